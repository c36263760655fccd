import hashlib
import hmac
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import yaml

from fakes import quiet_logger

from dsmove.cli.argument_parser import YAML_EXAMPLE, parse_args_with_config
from dsmove.config.config_loader import Config
from dsmove.core.exceptions import Fatal


class TestCLIConfigTwoPhaseParse(unittest.TestCase):
    def test_config_satisfies_required_options(self):
        with tempfile.TemporaryDirectory() as td:
            cfg = Path(td) / "cfg.yaml"
            cfg.write_text(
                "vcenter: vc01.lab\n"
                "vc-user: admin\n"
                "destination: nfs-gold\n"
                "max-concurrent: 4\n"
                "vms: [app01, app02]\n",
                encoding="utf-8",
            )

            # would fail if argparse enforced --destination before config defaults are applied
            args, conf, _logger = parse_args_with_config(
                argv=["--config", str(cfg), "migrate"], logger=quiet_logger()
            )

        self.assertEqual(args.cmd, "migrate")
        self.assertEqual(args.destination, "nfs-gold")
        self.assertEqual(args.vc_user, "admin")
        self.assertEqual(args.max_concurrent, 4)
        self.assertEqual(args.vms, ["app01", "app02"])
        self.assertEqual(args.poll_interval, 60)
        self.assertIn("max_concurrent", conf)

    def test_help_example_config_is_fully_applied(self):
        example = yaml.safe_load(YAML_EXAMPLE)
        with tempfile.TemporaryDirectory() as td:
            cfg = Path(td) / "example.yaml"
            cfg.write_text(YAML_EXAMPLE, encoding="utf-8")
            args, _conf, _ = parse_args_with_config(argv=["--config", str(cfg), "migrate"], logger=quiet_logger())

        for key, value in example.items():
            self.assertTrue(hasattr(args, key), key)
            self.assertEqual(getattr(args, key), value, key)
        # logging is set up from the command line before any config is read
        self.assertNotIn("verbose", example)

    def test_later_config_overrides_earlier(self):
        with tempfile.TemporaryDirectory() as td:
            base = Path(td) / "base.yaml"
            base.write_text("vcenter: vc01\nvc_user: a\ndestination: ds1\npoll_interval: 30\n", encoding="utf-8")
            wave = Path(td) / "wave.json"
            wave.write_text('{"destination": "ds2"}', encoding="utf-8")

            args, _conf, _ = parse_args_with_config(
                argv=["--config", str(base), "--config", str(wave), "migrate", "--vm", "x"],
                logger=quiet_logger(),
            )

        self.assertEqual(args.destination, "ds2")
        self.assertEqual(args.poll_interval, 30)
        self.assertEqual(args.vms, ["x"])

    def test_cli_defaults_without_config(self):
        args, conf, _ = parse_args_with_config(
            argv=["migrate", "--vcenter", "vc", "--vc-user", "u", "--destination", "ds", "--vm", "a", "--vm", "b"],
            logger=quiet_logger(),
        )
        self.assertEqual(conf, {})
        self.assertEqual(args.max_concurrent, 2)
        self.assertFalse(args.pooled)
        self.assertFalse(args.wait_all)
        self.assertIsNone(args.deadline)
        self.assertEqual(args.vms, ["a", "b"])


class TestConfigLoader(unittest.TestCase):
    def test_non_mapping_config_is_fatal(self):
        with tempfile.TemporaryDirectory() as td:
            cfg = Path(td) / "list.yaml"
            cfg.write_text("- a\n- b\n", encoding="utf-8")
            with self.assertRaises(Fatal):
                Config.load_one(quiet_logger(), str(cfg))

    def test_missing_config_is_fatal(self):
        with self.assertRaises(Fatal):
            Config.load_one(quiet_logger(), "/nonexistent/dsmove.yaml")

    def test_directory_expansion_only_picks_config_files(self):
        with tempfile.TemporaryDirectory() as td:
            (Path(td) / "a.yaml").write_text("x: 1\n", encoding="utf-8")
            (Path(td) / "b.json").write_text("{}", encoding="utf-8")
            (Path(td) / "notes.txt").write_text("hi", encoding="utf-8")
            found = Config.expand_configs(quiet_logger(), [td])
        self.assertEqual([Path(p).name for p in found], ["a.yaml", "b.json"])

    def test_merge_dicts_recurses(self):
        merged = Config.merge_dicts({"a": {"b": 1, "c": 2}, "l": [1]}, {"a": {"c": 3}, "l": [2]})
        self.assertEqual(merged, {"a": {"b": 1, "c": 3}, "l": [2]})

    def test_redacted_hides_passwords(self):
        red = Config.redacted({"vc_password": "s3cret", "vc_password_env": "VC_PW", "vcenter": "vc"})
        self.assertEqual(red["vc_password"], "***")
        self.assertEqual(red["vc_password_env"], "VC_PW")

    def test_signature_verification(self):
        with tempfile.TemporaryDirectory() as td:
            cfg = Path(td) / "c.yaml"
            cfg.write_text("destination: ds1\n", encoding="utf-8")
            sig = Path(str(cfg) + ".sig")
            good = hmac.new(b"k", cfg.read_bytes(), hashlib.sha256).hexdigest()
            with mock.patch.dict(os.environ, {"DSMOVE_CONFIG_SECRET": "k"}):
                sig.write_text(good, encoding="utf-8")
                self.assertEqual(Config.load_one(quiet_logger(), str(cfg))["destination"], "ds1")
                sig.write_text("0" * 64, encoding="utf-8")
                with self.assertRaises(Fatal):
                    Config.load_one(quiet_logger(), str(cfg))


if __name__ == "__main__":
    unittest.main()
