from __future__ import annotations
import argparse

from ..core.logger import c
from ..config.config_loader import Config
from .. import __version__

YAML_EXAMPLE = r"""# dsmove config
# Run:
# ./dsmove --config config.yaml migrate
# or merge configs:
# ./dsmove --config site.yaml --config wave3.yaml migrate
#
# What it will do:
# - Connect to vCenter with pyvmomi
# - Resolve the destination datastore (or datastore cluster with pooled: true)
# - Pick thin provisioning for NFS destinations, thick otherwise
# - Submit one storage vMotion per VM, in list order, keeping at most
#   max_concurrent relocate tasks in flight vCenter-wide
# - Print a result table (and optionally CSV/JSON)
vcenter: vcsa01.lab.local
vc_user: administrator@vsphere.local
vc_password_env: VC_PASSWORD
vc_insecure: true
destination: nfs-gold-01
pooled: false
vms:
  - app01
  - app02
  - db01
max_concurrent: 2
poll_interval: 60 # seconds, minimum 10
wait_all: false # keep polling until every migration finished
report_unknown: false # list still-running migrations as Unknown
csv: ./out/wave3.csv
"""

class CLI:
    @staticmethod
    def build_parser() -> argparse.ArgumentParser:
        epilog = (
            c("YAML example:\n", "cyan", ["bold"]) +
            c(YAML_EXAMPLE, "cyan") +
            "\n" +
            c("Feature summary:\n", "cyan", ["bold"]) +
            c(" • Throttled storage vMotion: at most N relocate tasks in flight\n", "cyan") +
            c(" • Targets: datastore or datastore cluster (Storage DRS placement)\n", "cyan") +
            c(" • Disk format: thin on NFS, thick elsewhere\n", "cyan") +
            c(" • Output: table, CSV, JSON\n", "cyan") +
            c(" • Safety: dry-run, optional deadline\n", "cyan")
        )
        p = argparse.ArgumentParser(
            prog="dsmove",
            description=c("dsmove: bounded storage vMotion scheduler for vCenter", "green", ["bold"]),
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=epilog,
        )
        p.add_argument("--config", action="append", default=[], help="YAML/JSON config file (repeatable; later overrides earlier).")
        p.add_argument("--dump-config", action="store_true", help="Print merged normalized config and exit.")
        p.add_argument("--dump-args", action="store_true", help="Print final parsed args and exit.")
        p.add_argument("--version", action="version", version=__version__)
        p.add_argument("-v", "--verbose", action="count", default=0, help="Verbosity: -v debug, -vv trace (per-task detail)")
        p.add_argument("--log-file", default=None, help="Write logs to file.")
        sub = p.add_subparsers(dest="cmd", required=True)

        pm = sub.add_parser("migrate", help="Storage vMotion a list of VMs to one datastore / datastore cluster")
        pm.add_argument("--vcenter", required=True, help="vCenter hostname or IP")
        pm.add_argument("--vc-user", dest="vc_user", required=True, help="vCenter username")
        pm.add_argument("--vc-password", dest="vc_password", default=None, help="vCenter password (or use --vc-password-env)")
        pm.add_argument("--vc-password-env", dest="vc_password_env", default=None, help="Env var containing vCenter password")
        pm.add_argument("--vc-port", dest="vc_port", type=int, default=443, help="vCenter HTTPS port (default: 443)")
        pm.add_argument("--vc-insecure", dest="vc_insecure", action="store_true", help="Disable TLS verification")
        pm.add_argument("--vm", dest="vms", action="append", default=None, help="VM name to migrate (repeatable; order is kept).")
        pm.add_argument("--vm-file", dest="vm_file", default=None, help="File with one VM name per line ('#' comments allowed).")
        pm.add_argument("--destination", required=True, help="Destination datastore (or datastore cluster with --pooled)")
        pm.add_argument("--pooled", action="store_true", help="Destination is a datastore cluster (Storage DRS picks the datastore).")
        pm.add_argument("--max-concurrent", dest="max_concurrent", type=int, default=2, help="Max migration tasks in flight (default: 2)")
        pm.add_argument("--poll-interval", dest="poll_interval", type=int, default=60, help="Seconds between checks and submissions (default: 60, min: 10)")
        pm.add_argument("--wait-all", dest="wait_all", action="store_true", help="Keep polling until every migration finished (default: single pass).")
        pm.add_argument("--report-unknown", dest="report_unknown", action="store_true", help="Report still-running migrations as Unknown instead of omitting them.")
        pm.add_argument("--deadline", type=float, default=None, help="Stop waiting after this many seconds (default: no deadline).")
        pm.add_argument("--csv", default=None, help="Write results to this CSV file.")
        pm.add_argument("--json", action="store_true", help="Print results as JSON on stdout.")
        pm.add_argument("--dry-run", dest="dry_run", action="store_true", help="Resolve target and plan, submit nothing.")

        return p


def parse_args_with_config(argv=None, logger=None):
    """Two-phase parse.

    Phase 0: parse ONLY global flags needed to find config/logging (no subcommand/required args)
    Phase 1: load+merge config files and apply as argparse defaults
    Phase 2: full parse_args with defaults applied (so required args can come from config)

    Returns: (args, merged_config_dict, logger)
    """
    parser = CLI.build_parser()

    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", action="append", default=[])
    pre.add_argument("-v", "--verbose", action="count", default=0)
    pre.add_argument("--log-file", dest="log_file", default=None)
    args0, _rest = pre.parse_known_args(argv)

    if logger is None:
        from ..core.logger import Log  # local import to avoid cycles
        logger = Log.setup(getattr(args0, "verbose", 0), getattr(args0, "log_file", None))

    conf = {}
    cfgs = getattr(args0, "config", None) or []
    if cfgs:
        cfgs = Config.expand_configs(logger, list(cfgs))
        conf = Config.load_many(logger, cfgs)
        Config.apply_as_defaults(logger, parser, conf)

    args = parser.parse_args(argv)
    return args, conf, logger
