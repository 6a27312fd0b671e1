"""
Renderer: formats one Terraform account group resource per management group.

Subscriptions are never rendered on their own; they only show up in the
``account_ids`` list of their parent group.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, TextIO

from .constants import (
    DEFAULT_DESCRIPTION,
    DEFAULT_RESOURCE_TYPE,
    DEFAULT_STRIP_PREFIX,
    ID_PREFIXES,
    ID_SEPARATOR_REPLACEMENT,
    LIST_SEPARATOR,
    NAME_SEPARATOR,
)
from .models import Node, NodeTable

logger = logging.getLogger(__name__)

RESOURCE_TEMPLATE = '''resource "{resource_type}" "{name}" {{
\tname = "{name}"
\tdescription = "{description}"
\taccount_ids = [{account_ids}]
\tchild_group_ids = [{child_group_ids}]
}}
'''


@dataclass(frozen=True)
class RenderSettings:
    """Literals used when rendering. Defaults match the Prisma Cloud provider."""
    resource_type: str = DEFAULT_RESOURCE_TYPE
    description: str = DEFAULT_DESCRIPTION
    strip_prefix: str = DEFAULT_STRIP_PREFIX


def sanitize_display_name(display_name: str, prefix: str = DEFAULT_STRIP_PREFIX) -> str:
    """
    Make a display name usable inside a resource name.

    Spaces become underscores, and a leading ``prefix`` (matched
    case-insensitively) is dropped unless it is the whole name.

    Example: "az-ps-Finance Team" -> "Finance_Team"
    """
    name = display_name.replace(' ', '_')
    if prefix and name.lower().startswith(prefix.lower()) and len(name) > len(prefix):
        return name[len(prefix):]
    return name


def sanitize_id(resource_id: str) -> str:
    """
    Shorten a management group or subscription ID.

    Example: "/providers/Microsoft.Management/managementGroups/tenant123" -> "tenant123"
    """
    for prefix in ID_PREFIXES:
        resource_id = resource_id.replace(prefix, '')
    return resource_id.replace('/', ID_SEPARATOR_REPLACEMENT)


def group_label(node: Node, prefix: str = DEFAULT_STRIP_PREFIX) -> str:
    """Resource name of a group: sanitized display name and sanitized ID."""
    return sanitize_display_name(node.display_name, prefix) + NAME_SEPARATOR + sanitize_id(node.id)


def format_list(entries: Iterable[str]) -> str:
    """Quote each entry and join them for an HCL list literal. Empty input gives ''."""
    return LIST_SEPARATOR.join(f'"{entry}"' for entry in entries)


def render_group(node: Node, table: NodeTable, settings: RenderSettings = RenderSettings()) -> str:
    """Render the resource block for one group node."""
    name = group_label(node, settings.strip_prefix)
    account_ids = format_list(
        sanitize_id(sub.id) for sub in table.children_subscriptions(node)
    )
    child_group_ids = format_list(
        group_label(child, settings.strip_prefix) for child in table.children_groups(node)
    )
    return RESOURCE_TEMPLATE.format(
        resource_type=settings.resource_type,
        name=name,
        description=settings.description,
        account_ids=account_ids,
        child_group_ids=child_group_ids,
    )


def render_table(table: NodeTable, settings: RenderSettings = RenderSettings()) -> Iterator[str]:
    """Yield one block per group, in table order."""
    for node in table.groups():
        yield render_group(node, table, settings)


def write_resources(table: NodeTable, stream: TextIO, settings: RenderSettings = RenderSettings()) -> int:
    """Write every group block to ``stream``. Returns the number of blocks written."""
    count = 0
    for block in render_table(table, settings):
        stream.write(block)
        count += 1
    logger.debug(f"Rendered {count} account group resources")
    return count
