"""Credential and region resolution for AWS profiles."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ProfileNotFound

from sugar.constants import DEFAULT_REGION
from sugar.core.errors import ConfigurationError
from sugar.providers.aws.utils import get_aws_credentials_error_message

logger = logging.getLogger(__name__)


def resolve_session(
    profile: str | None,
    settings: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> tuple[boto3.Session, str]:
    """Create a boto3 session for a profile and pick its region.

    Region precedence: the ``region`` configuration key, the session's own
    region (``AWS_DEFAULT_REGION`` or the profile's ``region``), then
    ``AWS_REGION``, then ``default_region`` with a warning.

    Parameters
    ----------
    profile : str | None
        AWS profile name from the ``name@profile`` filter, or None for the
        default credential chain
    settings : Mapping[str, Any] | None
        Merged configuration
    environ : Mapping[str, str] | None
        Environment (default: os.environ)

    Returns
    -------
    tuple[boto3.Session, str]
        Session and region name

    Raises
    ------
    ConfigurationError
        If the profile does not exist or no credentials can be found
    """
    settings = settings or {}
    environ = os.environ if environ is None else environ

    try:
        session = boto3.Session(profile_name=profile) if profile else boto3.Session()
    except ProfileNotFound as e:
        raise ConfigurationError(f"Profile {profile} not found: {e}") from e

    try:
        credentials = session.get_credentials()
    except BotoCoreError as e:
        raise ConfigurationError(f"Unable to load credentials: {e}") from e

    if credentials is None:
        raise ConfigurationError(get_aws_credentials_error_message())

    region = settings.get("region") or session.region_name or environ.get("AWS_REGION")

    if not region:
        region = settings.get("default_region") or DEFAULT_REGION
        logger.warning("AWS_REGION not present, assuming %s", region)

    logger.debug("Using profile %s in region %s", profile or "default", region)
    return session, region
