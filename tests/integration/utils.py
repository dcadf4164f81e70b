import functools
import os

import pytest
from anthropic import PermissionDeniedError

from receipt_analyzer.errors import TransportError


def skip_if_missing_env_vars(required_vars):
    """
    Decorator to skip tests if required environment variables are not set.

    Args:
        required_vars (list): List of environment variable names to check.
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            missing = [var for var in required_vars if not os.getenv(var)]
            if missing:
                pytest.skip(
                    f"Missing required environment variables: {', '.join(missing)}. "
                    "Ensure they are set in your environment or .env file."
                )
            return await func(*args, **kwargs)

        return wrapper

    return decorator


def skip_on_access_denied(func):
    """
    Decorator to skip tests if the account has no access to the Bedrock model.

    Model access must be granted per region in the Bedrock console.
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except TransportError as e:
            if isinstance(e.__cause__, PermissionDeniedError):
                pytest.skip(
                    "Bedrock model access is not enabled for this account. "
                    "Request access in the Bedrock console or skip integration tests."
                )
            raise

    return wrapper


def verify_cli_success(result):
    """
    Verify common CLI success criteria for workflow tests.

    Args:
        result: CliRunner result object from typer.testing
    """
    assert result.exit_code == 0, (
        f"Expected exit code 0, got {result.exit_code}\n"
        f"Output: {result.stdout}\nError: {result.stderr}"
    )

    for key in ("'brand'", "'items'", "'confidence'"):
        assert key in result.stdout, (
            f"Expected {key} in output\nOutput: {result.stdout}"
        )
