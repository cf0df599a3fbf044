"""EC2 inventory access for sugar."""

from __future__ import annotations

import logging
from typing import Any

import boto3

from sugar.constants import IDENTITY_TAG, NAME_TAG, RUNNING_STATE
from sugar.core.errors import CacheWriteError, ConfigurationError, InventoryFetchError
from sugar.core.models import HostIdentity, Instance
from sugar.providers.aws.errors import handle_aws_errors
from sugar.providers.aws.utils import iter_reservation_instances
from sugar.providers.exceptions import ProviderCredentialsError, ProviderError

logger = logging.getLogger(__name__)


class EC2Inventory:
    """Query running EC2 instances and read or write their metadata.

    Parameters
    ----------
    region : str
        AWS region for EC2 operations
    session : boto3.Session | None
        Session carrying the resolved profile credentials. If None, a default
        session is used
    name_tag : str
        Tag key holding instance display names
    identity_tag : str
        Tag key holding cached host identities
    """

    def __init__(
        self,
        region: str,
        session: Any | None = None,
        name_tag: str = NAME_TAG,
        identity_tag: str = IDENTITY_TAG,
    ) -> None:
        self.region = region
        self.session = session or boto3.Session()
        self.name_tag = name_tag
        self.identity_tag = identity_tag
        self.ec2_client = self.session.client("ec2", region_name=region)

    def list_running_instances(self) -> tuple[Instance, ...]:
        """Fetch all running instances in the region.

        Returns
        -------
        tuple[Instance, ...]
            Snapshot in API response order

        Raises
        ------
        ConfigurationError
            If the credentials are missing or rejected
        InventoryFetchError
            If the instance list cannot be fetched
        """
        logger.debug("Fetching running instances in %s", self.region)

        try:
            with handle_aws_errors():
                paginator = self.ec2_client.get_paginator("describe_instances")
                pages = paginator.paginate(
                    Filters=[{"Name": "instance-state-name", "Values": [RUNNING_STATE]}]
                )
                instances = tuple(
                    Instance.from_ec2(data, self.name_tag, self.identity_tag)
                    for data in iter_reservation_instances(pages)
                )
        except ProviderCredentialsError as e:
            raise ConfigurationError(str(e)) from e
        except ProviderError as e:
            raise InventoryFetchError(
                f"Error fetching instance list from ec2: {e}"
            ) from e

        logger.debug("Found %d running instances", len(instances))
        return instances

    def get_console_output(self, instance_id: str) -> str:
        """Fetch the boot console log of an instance.

        botocore base64-decodes the ``Output`` field before it reaches us.

        Raises
        ------
        ProviderError
            If the API call fails
        """
        with handle_aws_errors():
            response = self.ec2_client.get_console_output(InstanceId=instance_id)
        return response.get("Output") or ""

    def tag_instance(self, instance_id: str, tags: dict[str, str]) -> None:
        """Create or overwrite tags on an instance.

        Raises
        ------
        ProviderError
            If the API call fails
        """
        with handle_aws_errors():
            self.ec2_client.create_tags(
                Resources=[instance_id],
                Tags=[{"Key": key, "Value": value} for key, value in tags.items()],
            )


class InstanceTagCache:
    """Identity cache stored as a tag on each instance.

    Identities already tagged on an instance reach the pipeline through the
    inventory snapshot (``Instance.cached_identity``) at no API cost; this
    cache writes new ones back through EC2 and remembers them for the rest
    of the run.

    Parameters
    ----------
    inventory : EC2Inventory
        Inventory used to write tags
    """

    def __init__(self, inventory: EC2Inventory) -> None:
        self.inventory = inventory
        self._known: dict[str, HostIdentity] = {}

    def get(self, instance_id: str) -> HostIdentity | None:
        return self._known.get(instance_id)

    def put(self, instance_id: str, identity: HostIdentity) -> None:
        try:
            self.inventory.tag_instance(
                instance_id, {self.inventory.identity_tag: identity.to_tag_value()}
            )
        except ProviderError as e:
            raise CacheWriteError(str(e)) from e

        self._known[instance_id] = identity
