#!/usr/bin/env python3
"""
Command line entry point for the Nitro testnode orchestrator.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .commands import (
    clean_command,
    config_command,
    init_command,
    logs_command,
    script_command,
    start_command,
    status_command,
    stop_command,
)
from .config_constants import MAX_BATCH_POSTERS, MAX_REDUNDANT_SEQUENCERS
from .console import Console, configure_logging
from .errors import TestnodeError
from .flags import FlagSet
from .preflight import check_runtime_dependencies

DEV_COMPONENTS = ('nitro', 'blockscout')

# Commands that only read local settings and never call docker
OFFLINE_COMMANDS = {'config'}


def _add_topology_arguments(parser: argparse.ArgumentParser) -> None:
    """Options shared by init and start: they decide which services run."""
    group = parser.add_argument_group('Topology')
    group.add_argument('--simple', action=argparse.BooleanOptionalAction, default=True,
                       help='Simple config: sequencer only, no redis, posters or staker (default: on)')
    group.add_argument('--l3node', action='store_true', help='Deploy an L3 node on top of the L2')
    group.add_argument('--blockscout', action='store_true', help='Run the Blockscout block explorer')
    group.add_argument('--l2-anytrust', action='store_true', help='Run the L2 as an AnyTrust chain')
    group.add_argument('--l2-timeboost', action='store_true', help='Enable Timeboost express lane auctions')
    group.add_argument('--validate', action='store_true', help='Run a full validator instead of staker-unsafe')
    group.add_argument('--batchposters', type=int, default=1, choices=range(MAX_BATCH_POSTERS + 1),
                       help='Number of batch posters (default: 1)')
    group.add_argument('--redundantsequencers', type=int, default=0,
                       choices=range(MAX_REDUNDANT_SEQUENCERS + 1),
                       help='Number of redundant sequencers (default: 0)')


def _add_init_parser(subparsers) -> None:
    parser = subparsers.add_parser(
        'init',
        help='Wipe all state and deploy a fresh testnode',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  # Simple chain, no prompt
  %(prog)s -f

  # Full topology with AnyTrust and an L3 paying fees in a custom token
  %(prog)s -f --no-simple --l2-anytrust --l3node --l3-fee-token

  # Build nitro from ../ instead of pulling the release image
  %(prog)s -f --dev nitro
        '''
    )
    parser.add_argument('-f', '--force', '-y', '--yes', dest='force', action='store_true',
                        help='Skip the confirmation prompt')
    _add_topology_arguments(parser)

    l3 = parser.add_argument_group('L3')
    l3.add_argument('--l3-fee-token', action='store_true', help='L3 uses a custom ERC-20 fee token')
    l3.add_argument('--l3-fee-token-decimals', type=int, default=18, metavar='N',
                    help='Decimals of the L3 fee token (default: 18)')
    l3.add_argument('--l3-fee-token-pricer', action='store_true', help='Deploy a fee token pricer')
    l3.add_argument('--l3-token-bridge', action='store_true', help='Deploy the L2-L3 token bridge')
    l3.add_argument('--tokenbridge', action='store_true', help='Deploy the L1-L2 token bridge image')

    consensus = parser.add_argument_group('Consensus')
    consensus.add_argument('--pos', action='store_true', help='Run L1 as proof-of-stake with Prysm')

    build = parser.add_argument_group('Build')
    build.add_argument('--dev', nargs='*', choices=DEV_COMPONENTS, default=None, metavar='COMPONENT',
                       help='Use dev builds for the given components (nitro, blockscout); '
                            'no component means both')
    build.add_argument('--dev-contracts', action='store_true', help='Use local contract checkouts')
    build.add_argument('--build', action='store_true', help='Rebuild node images')
    build.add_argument('--no-build', action='store_true', help='Never build node images')
    build.add_argument('--build-utils', action='store_true', help='Rebuild the utility images')
    build.add_argument('--force-build-utils', action='store_true',
                       help='Rebuild the utility images without cache')

    traffic = parser.add_argument_group('Traffic')
    traffic.add_argument('--no-l1-traffic', action='store_true', help='Do not generate L1 traffic')
    traffic.add_argument('--no-l2-traffic', action='store_true', help='Do not generate L2 traffic')
    traffic.add_argument('--no-l3-traffic', action='store_true', help='Do not generate L3 traffic')

    parser.add_argument('--ci', action='store_true', help='CI mode (buildx bake for utility images)')


def _add_start_parser(subparsers) -> None:
    parser = subparsers.add_parser('start', help='Start an already initialized testnode')
    _add_topology_arguments(parser)
    parser.add_argument('--detach', action='store_true', help='Run services in the background')
    parser.add_argument('--nowait', action='store_true',
                        help='With --detach, do not wait for services to become healthy')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='testnode',
        description='Nitro testnode: local Arbitrum L1/L2/L3 stack on Docker Compose',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  # Fresh chain with default settings
  %(prog)s init --force

  # Start services of an existing chain in the background
  %(prog)s start --detach

  # Check what is running
  %(prog)s status

  # Run a helper script inside the scripts container
  %(prog)s script print-address --account sequencer

  # Follow the sequencer logs
  %(prog)s logs -f sequencer

  # Show the resolved settings
  %(prog)s config
        '''
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('-v', '--verbose', action='store_true', help='Show debug output and executed commands')
    parser.add_argument('-C', '--work-dir', type=Path, default=Path.cwd(), metavar='PATH',
                        help='Directory holding docker-compose.yaml (default: current directory)')

    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')
    subparsers.required = True

    _add_init_parser(subparsers)
    _add_start_parser(subparsers)

    stop = subparsers.add_parser('stop', help='Stop all services')
    stop.add_argument('-c', '--clean', action='store_true', help='Also remove volumes')

    subparsers.add_parser('status', help='Show running services')

    clean = subparsers.add_parser('clean', help='Remove all testnode data and volumes')
    clean.add_argument('-f', '--force', '-y', '--yes', dest='force', action='store_true',
                       help='Skip the confirmation prompt')
    clean.add_argument('--prune-images', action='store_true', help='Also prune unused docker images')

    script = subparsers.add_parser('script', help='Run a command in the scripts container')
    script.add_argument('script_args', nargs=argparse.REMAINDER, metavar='ARGS',
                        help='Script name and its arguments')

    logs = subparsers.add_parser('logs', help='Show service logs')
    logs.add_argument('services', nargs='*', metavar='SERVICE', help='Services to show (default: all)')
    logs.add_argument('-f', '--follow', action='store_true', help='Keep streaming new log lines')
    logs.add_argument('--tail', type=int, default=None, metavar='N', help='Only show the last N lines per service')

    config = subparsers.add_parser('config', help='Print the resolved settings')
    config.add_argument('--write', action='store_true', help='Write the settings to testnode.toml')

    return parser


def init_flags_from_args(args: argparse.Namespace) -> FlagSet:
    dev = args.dev
    # --dev without components selects all of them
    dev_components = set(DEV_COMPONENTS) if dev == [] else set(dev or ())
    build = args.build and not args.no_build
    return FlagSet(
        init=True,
        force=args.force,
        simple=args.simple,
        l3node=args.l3node,
        blockscout=args.blockscout,
        l2_anytrust=args.l2_anytrust,
        l2_timeboost=args.l2_timeboost,
        validate=args.validate,
        batchposters=args.batchposters,
        redundantsequencers=args.redundantsequencers,
        l3_fee_token=args.l3_fee_token,
        l3_fee_token_decimals=args.l3_fee_token_decimals,
        l3_fee_token_pricer=args.l3_fee_token_pricer,
        l3_token_bridge=args.l3_token_bridge,
        tokenbridge=args.tokenbridge,
        pos=args.pos,
        dev_nitro='nitro' in dev_components,
        build_dev_nitro='nitro' in dev_components,
        dev_blockscout='blockscout' in dev_components,
        build_dev_blockscout='blockscout' in dev_components,
        dev_contracts=args.dev_contracts,
        build=build,
        build_node_images=build,
        build_utils=args.build_utils,
        force_build_utils=args.force_build_utils,
        l1_traffic=not args.no_l1_traffic,
        l2_traffic=not args.no_l2_traffic,
        l3_traffic=not args.no_l3_traffic,
        ci=args.ci,
        verbose=args.verbose,
    )


def start_flags_from_args(args: argparse.Namespace) -> FlagSet:
    return FlagSet(
        simple=args.simple,
        l3node=args.l3node,
        blockscout=args.blockscout,
        l2_anytrust=args.l2_anytrust,
        l2_timeboost=args.l2_timeboost,
        validate=args.validate,
        batchposters=args.batchposters,
        redundantsequencers=args.redundantsequencers,
        detach=args.detach,
        nowait=args.nowait,
        # start never generates traffic
        l1_traffic=False,
        l2_traffic=False,
        l3_traffic=False,
        verbose=args.verbose,
    )


def dispatch(args: argparse.Namespace, console: Console) -> int:
    work_dir = args.work_dir
    if args.command == 'init':
        return init_command(init_flags_from_args(args), work_dir, console)
    if args.command == 'start':
        return start_command(start_flags_from_args(args), work_dir, console)
    if args.command == 'stop':
        return stop_command(work_dir, console, clean=args.clean)
    if args.command == 'status':
        return status_command(work_dir, console)
    if args.command == 'clean':
        return clean_command(work_dir, console, force=args.force, prune_images=args.prune_images)
    if args.command == 'script':
        return script_command(args.script_args, work_dir, console)
    if args.command == 'logs':
        return logs_command(args.services, work_dir, console, follow=args.follow, tail=args.tail)
    if args.command == 'config':
        return config_command(work_dir, console, write=args.write)
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging('DEBUG' if args.verbose else 'WARNING')
    console = Console(verbose=args.verbose)

    if args.command not in OFFLINE_COMMANDS:
        check_runtime_dependencies(args.work_dir)

    try:
        return dispatch(args, console)
    except TestnodeError as e:
        console.error(str(e))
        return 1
    except KeyboardInterrupt:
        console.warn("Interrupted by user")
        return 130


if __name__ == '__main__':
    sys.exit(main())
