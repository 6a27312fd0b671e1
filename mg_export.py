#!/usr/bin/env python3
"""
mg2tf - Azure Management Group Exporter

Mirrors the Azure Management Group hierarchy of a tenant as Prisma Cloud
account groups, written as Terraform resources.

Requires a pre-fetched ARM access token:
    export AZURE_SUBSCRIPTION_ID=$(az account show --query id -o tsv)
    export AZURE_TENANT_ID=$(az account show --query tenantId -o tsv)
    export AZURE_ACCESS_TOKEN=$(az account get-access-token --query accessToken -o tsv)

Usage:
    python3 mg_export.py > account_groups.tf
    python3 mg_export.py --output account_groups.tf --summary
    python3 mg_export.py --input descendants.json --tenant <tenant-id>
"""
import argparse
import logging
import sys
from typing import List, Optional

from mg2tf.config import generate_sample_config, load_config, render_settings, require_credentials
from mg2tf.constants import DEFAULT_LOG_LEVEL
from mg2tf.fetcher import fetch_descendants, load_descendants_file
from mg2tf.render import write_resources
from mg2tf.tree import build_node_table
from mg2tf.utils import ConfigError, FetchError, open_output, print_summary_table, setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='mg2tf - Export Azure Management Groups as Prisma Cloud account groups'
    )
    parser.add_argument('--config', help='YAML config file (default: ./mg2tf-config.yaml if present)')
    parser.add_argument('--tenant', help='Tenant ID (default: $AZURE_TENANT_ID)')
    parser.add_argument('--subscription', help='Subscription ID (default: $AZURE_SUBSCRIPTION_ID)')
    parser.add_argument(
        '--input',
        help='Read a saved descendants response from this file instead of calling the API'
    )
    parser.add_argument('--output', help='Write Terraform to this file (default: standard output)')
    parser.add_argument('--log-level', help=f'Logging level (default: {DEFAULT_LOG_LEVEL})')
    parser.add_argument('--log-dir', help='Also write a log file to this directory')
    parser.add_argument(
        '--summary',
        action='store_true',
        help='Print a table of management groups to standard error after rendering'
    )
    parser.add_argument(
        '--generate-config',
        action='store_true',
        help='Print a sample config file and exit'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.generate_config:
        print(generate_sample_config())
        return 0

    setup_logging(args.log_level or DEFAULT_LOG_LEVEL, log_dir=args.log_dir)

    # Load configuration
    try:
        config = load_config(args)
        if not args.log_level and config.get('log_level'):
            setup_logging(config['log_level'], log_dir=args.log_dir)
        credentials = require_credentials(config, need_token=not args.input)
    except ConfigError as e:
        logger.error(f"ERROR: {e}")
        sys.exit(1)

    settings = render_settings(config)

    # Fetch the flat listing
    try:
        if args.input:
            entries = load_descendants_file(args.input)
        else:
            entries = fetch_descendants(credentials)
    except FetchError as e:
        logger.error(f"Failed to fetch management groups: {e}")
        logger.error("Check the access token is current and has read access to the tenant root group.")
        sys.exit(1)

    table = build_node_table(entries, credentials.tenant_id)

    # Render
    output_path = config.get('output')
    try:
        stream = open_output(output_path)
        try:
            count = write_resources(table, stream, settings)
        finally:
            if stream is not sys.stdout:
                stream.close()
            else:
                stream.flush()
    except OSError as e:
        logger.error(f"Failed to write Terraform to {output_path or 'standard output'}: {e}")
        sys.exit(1)

    if output_path:
        logger.info(f"Wrote {count} account groups to {output_path}")

    if args.summary:
        print_summary_table(table, strip_prefix=settings.strip_prefix)

    return 0


if __name__ == '__main__':
    sys.exit(main())
