"""Client for activating an artifact on an Elastic Beanstalk environment.

The FastBoot server running on the environment reads the location of the app
archive from its environment properties. Activation pushes the new values
and Elastic Beanstalk restarts the app servers to apply them:

```python
from fastboot_deploy.elastic_beanstalk import ElasticBeanstalk

client = ElasticBeanstalk()
await client.update_environment(
    "my-app",
    "my-app-production",
    {"FASTBOOT_S3_BUCKET": "my-bucket", "FASTBOOT_S3_KEY": "fastboot-dist-abc.zip"},
)
```
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Mapping
import logging
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionError as BotoConnectionError,
    HTTPClientError,
    NoCredentialsError,
)

from .exceptions import (
    ActivationException,
    EnvironmentAccessDeniedError,
    EnvironmentNotFoundError,
    EnvironmentUnavailableError,
)

__all__ = [
    "EnvironmentClient",
    "ElasticBeanstalk",
]

_LOGGER = logging.getLogger(__name__)


ENVIRONMENT_NAMESPACE = "aws:elasticbeanstalk:application:environment"
READY_STATUS = "Ready"
TERMINATED_STATUSES = {"Terminating", "Terminated"}

ACCESS_DENIED_CODES = {
    "AccessDenied",
    "AccessDeniedException",
    "InsufficientPrivilegesException",
    "UnrecognizedClientException",
    "InvalidClientTokenId",
    "SignatureDoesNotMatch",
    "ExpiredToken",
    "ExpiredTokenException",
}
TRANSIENT_CODES = {
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "ServiceUnavailable",
    "InternalFailure",
    "OperationInProgressFailure",
}
NOT_FOUND_MESSAGE = "No Environment found"

# Failures are reported to the caller without retrying
_CLIENT_CONFIG = Config(retries={"mode": "standard", "max_attempts": 1})


class EnvironmentClient(ABC):
    """Updates the configuration of a named hosting environment."""

    @abstractmethod
    async def update_environment(
        self,
        application_name: str,
        environment_name: str,
        variables: Mapping[str, str],
    ) -> None:
        """Push the variables to the environment and apply them."""


def _translate_error(environment_name: str, err: Exception) -> ActivationException:
    """Map a botocore error to the activation failure it represents."""
    if isinstance(err, NoCredentialsError):
        return EnvironmentAccessDeniedError(environment_name, str(err))
    if isinstance(err, (BotoConnectionError, HTTPClientError)):
        return EnvironmentUnavailableError(environment_name, str(err))
    if isinstance(err, ClientError):
        error = err.response.get("Error", {})
        code = error.get("Code", "")
        status = err.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
        if code in ACCESS_DENIED_CODES or status == 403:
            return EnvironmentAccessDeniedError(environment_name, str(err))
        if NOT_FOUND_MESSAGE in error.get("Message", ""):
            return EnvironmentNotFoundError(environment_name, str(err))
        if code in TRANSIENT_CODES or status >= 500:
            return EnvironmentUnavailableError(environment_name, str(err))
    return ActivationException(environment_name, str(err))


class ElasticBeanstalk(EnvironmentClient):
    """Elastic Beanstalk implementation of the EnvironmentClient."""

    def __init__(self, region: str | None = None, client: Any = None) -> None:
        """Initialize ElasticBeanstalk."""
        self._region = region
        self._client = client

    @property
    def client(self) -> Any:
        """Return the Elastic Beanstalk client, created on first use."""
        if self._client is None:
            self._client = boto3.client(
                "elasticbeanstalk", region_name=self._region, config=_CLIENT_CONFIG
            )
        return self._client

    def _check_environment(self, application_name: str, environment_name: str) -> None:
        """Verify the environment exists and can accept an update."""
        response = self.client.describe_environments(
            ApplicationName=application_name,
            EnvironmentNames=[environment_name],
            IncludeDeleted=False,
        )
        environments = [
            env
            for env in response.get("Environments", [])
            if env.get("Status") not in TERMINATED_STATUSES
        ]
        if not environments:
            raise EnvironmentNotFoundError(
                environment_name,
                f"No environment found in application {application_name}",
            )
        if (status := environments[0].get("Status")) != READY_STATUS:
            raise EnvironmentUnavailableError(
                environment_name, f"Environment is {status}, expected {READY_STATUS}"
            )

    def _update_environment(
        self,
        application_name: str,
        environment_name: str,
        variables: Mapping[str, str],
    ) -> None:
        self._check_environment(application_name, environment_name)
        self.client.update_environment(
            ApplicationName=application_name,
            EnvironmentName=environment_name,
            OptionSettings=[
                {
                    "Namespace": ENVIRONMENT_NAMESPACE,
                    "OptionName": name,
                    "Value": value,
                }
                for name, value in variables.items()
            ],
        )

    async def update_environment(
        self,
        application_name: str,
        environment_name: str,
        variables: Mapping[str, str],
    ) -> None:
        """Push the variables as environment properties of the environment."""
        _LOGGER.debug(
            "Updating %s/%s with %s",
            application_name,
            environment_name,
            ", ".join(variables),
        )
        try:
            await asyncio.to_thread(
                self._update_environment,
                application_name,
                environment_name,
                variables,
            )
        except (BotoCoreError, ClientError) as err:
            raise _translate_error(environment_name, err) from err
