"""
mg2tf shared library.
"""
# Import constants module for easy access
from . import constants
from .config import Credentials, load_config, render_settings, require_credentials
from .constants import (
    DEFAULT_DESCRIPTION,
    DEFAULT_RESOURCE_TYPE,
    DEFAULT_STRIP_PREFIX,
    TYPE_MANAGEMENT_GROUP,
    TYPE_SUBSCRIPTION,
)
from .fetcher import build_descendants_url, fetch_descendants, load_descendants_file, parse_descendants
from .models import Node, NodeKind, NodeTable
from .render import (
    RenderSettings,
    format_list,
    group_label,
    render_group,
    render_table,
    sanitize_display_name,
    sanitize_id,
    write_resources,
)
from .tree import attach_children, build_node_table, index_nodes, make_root_node
from .utils import ConfigError, FetchError, Mg2TfError, print_summary_table, setup_logging

__all__ = [
    # Constants
    'constants',
    'DEFAULT_DESCRIPTION',
    'DEFAULT_RESOURCE_TYPE',
    'DEFAULT_STRIP_PREFIX',
    'TYPE_MANAGEMENT_GROUP',
    'TYPE_SUBSCRIPTION',
    # Models
    'Node',
    'NodeKind',
    'NodeTable',
    # Config
    'Credentials',
    'load_config',
    'render_settings',
    'require_credentials',
    # Fetcher
    'build_descendants_url',
    'fetch_descendants',
    'load_descendants_file',
    'parse_descendants',
    # Tree builder
    'make_root_node',
    'index_nodes',
    'attach_children',
    'build_node_table',
    # Renderer
    'RenderSettings',
    'sanitize_display_name',
    'sanitize_id',
    'group_label',
    'format_list',
    'render_group',
    'render_table',
    'write_resources',
    # Utils
    'Mg2TfError',
    'ConfigError',
    'FetchError',
    'setup_logging',
    'print_summary_table',
]
