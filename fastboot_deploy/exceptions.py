"""Exceptions related to fastboot-deploy."""

__all__ = [
    "DeployException",
    "ConfigException",
    "InputException",
    "CommandException",
    "BuildException",
    "ArchiveException",
    "UploadException",
    "ActivationException",
    "EnvironmentNotFoundError",
    "EnvironmentAccessDeniedError",
    "EnvironmentUnavailableError",
]


class DeployException(Exception):
    """Generic base exception used for this library."""


class ConfigException(DeployException):
    """Raised when the deploy configuration is missing or invalid."""


class InputException(DeployException):
    """Raised when the input files or values are not formatted as expected."""


class CommandException(DeployException):
    """Raised when there is a failure running a subcommand."""


class BuildException(CommandException):
    """Raised when there is a failure building the FastBoot application."""


class ArchiveException(CommandException):
    """Raised when the deployable archive could not be created or renamed."""


class UploadException(DeployException):
    """Raised when the archive could not be uploaded to the bucket."""


class ActivationException(DeployException):
    """Raised when the hosting environment could not be updated."""

    def __init__(self, environment_name: str, message: str | None) -> None:
        super().__init__(
            f"Environment {environment_name} activation failed: "
            f"{message or 'Unknown error'}"
        )
        self.environment_name = environment_name
        self.message = message


class EnvironmentNotFoundError(ActivationException):
    """Raised when the target environment does not exist."""


class EnvironmentAccessDeniedError(ActivationException):
    """Raised when the credentials are not allowed to update the environment."""


class EnvironmentUnavailableError(ActivationException):
    """Raised on a transient failure, e.g. network errors or a busy environment."""
