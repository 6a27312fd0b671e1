"""
Constants for the mg2tf exporter.

This module defines the magic strings used across the codebase so the wire
types, URL templates and rendered literals live in one place.
"""

# =============================================================================
# Azure Resource Manager
# =============================================================================

ARM_ENDPOINT = "https://management.azure.com"
MANAGEMENT_GROUPS_API_VERSION = "2021-04-01"

DESCENDANTS_URL_TEMPLATE = (
    ARM_ENDPOINT
    + "/providers/Microsoft.Management/managementGroups/{tenant_id}/descendants"
    + "?api-version=" + MANAGEMENT_GROUPS_API_VERSION
)

# Wire "type" values returned by the descendants API
TYPE_MANAGEMENT_GROUP = "Microsoft.Management/managementGroups"
TYPE_SUBSCRIPTION = "Microsoft.Management/managementGroups/subscriptions"

# =============================================================================
# Resource ID Prefixes
# =============================================================================

MANAGEMENT_GROUP_ID_PREFIX = "/providers/Microsoft.Management/managementGroups/"
SUBSCRIPTION_ID_PREFIX = "/subscriptions/"

# Stripped from group and subscription IDs, in this order
ID_PREFIXES = (MANAGEMENT_GROUP_ID_PREFIX, SUBSCRIPTION_ID_PREFIX)
ID_SEPARATOR_REPLACEMENT = "__"

# =============================================================================
# Tenant Root
# =============================================================================

TENANT_ROOT_DISPLAY_NAME = "TENANT_ROOT"

# =============================================================================
# Rendering Defaults
# =============================================================================

DEFAULT_RESOURCE_TYPE = "prismacloud_account_group"
DEFAULT_DESCRIPTION = "Made by Terraform"
DEFAULT_STRIP_PREFIX = "az-ps-"

# Joins display name and sanitized ID into a resource name
NAME_SEPARATOR = "---"
LIST_SEPARATOR = " , "

# =============================================================================
# Environment Variables
# =============================================================================

ENV_SUBSCRIPTION_ID = "AZURE_SUBSCRIPTION_ID"
ENV_TENANT_ID = "AZURE_TENANT_ID"
ENV_ACCESS_TOKEN = "AZURE_ACCESS_TOKEN"

DEFAULT_LOG_LEVEL = "INFO"
