"""
Tests for configuration loading and header map validation.
"""

import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from forwarded_headers.config import ConfigError, ForwardedSettings, load_settings, validate_header_map
from forwarded_headers.encoder import DEFAULT_HEADER_MAP
from forwarded_headers.trust import trust_nobody

CLEAN_ENV = {"FORWARDED_CONFIG": "", "FORWARDED_TRUSTED_PROXIES": "", "FORWARDED_TRUSTED_SECRET": ""}


class TestValidateHeaderMap(unittest.TestCase):
    def test_default_map_valid(self):
        is_valid, errors = validate_header_map(DEFAULT_HEADER_MAP)
        self.assertTrue(is_valid)
        self.assertEqual(errors, [])

    def test_fallback_mapping_is_valid(self):
        """Several headers may target the same directive"""
        is_valid, errors = validate_header_map([("X-Client-Ip", "for"), ("Original-Ip", "for")])
        self.assertTrue(is_valid)

    def test_invalid_entries(self):
        is_valid, errors = validate_header_map(
            [
                ("Bad Header", "for"),
                ("X-Ok", "bad-directive"),
                ("X-Ok", ""),
                ("only-one",),
            ]
        )
        self.assertFalse(is_valid)
        self.assertEqual(len(errors), 4)
        self.assertIn("invalid header name", errors[0])
        self.assertIn("invalid directive name", errors[1])


class TestLoadSettings(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        env_patch = patch.dict(os.environ, CLEAN_ENV)
        env_patch.start()
        self.addCleanup(env_patch.stop)

    def _write_config(self, text: str) -> Path:
        path = Path(self.tmpdir.name) / "forwarded.yml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_defaults(self):
        settings = load_settings()
        self.assertEqual(settings.header_map, DEFAULT_HEADER_MAP)
        self.assertEqual(settings.trusted_proxies, [])
        self.assertIsNone(settings.trusted_secret)
        self.assertEqual(settings.secret_directive, "secret")

    def test_missing_file_uses_defaults(self):
        settings = load_settings(Path(self.tmpdir.name) / "missing.yml")
        self.assertEqual(settings, ForwardedSettings())

    def test_yaml_file(self):
        path = self._write_config(
            """
header_map:
  - header: X-Client-Ip
    directive: for
  - header: X-Original-Path
    directive: path
trusted_proxies:
  - 10.0.0.0/8
  - "::1"
trusted_secret: s3cret
secret_directive: token
"""
        )
        settings = load_settings(path)
        self.assertEqual(settings.header_map, [("X-Client-Ip", "for"), ("X-Original-Path", "path")])
        self.assertEqual(settings.trusted_proxies, ["10.0.0.0/8", "::1"])
        self.assertEqual(settings.trusted_secret, "s3cret")
        self.assertEqual(settings.secret_directive, "token")

    def test_header_map_as_mapping(self):
        path = self._write_config("header_map:\n  X-Real-Ip: for\n  X-Scheme: proto\n")
        settings = load_settings(path)
        self.assertEqual(settings.header_map, [("X-Real-Ip", "for"), ("X-Scheme", "proto")])

    def test_config_path_from_env(self):
        path = self._write_config("trusted_proxies: 10.0.0.1, 10.0.0.2\n")
        with patch.dict(os.environ, {"FORWARDED_CONFIG": str(path)}):
            settings = load_settings()
        self.assertEqual(settings.trusted_proxies, ["10.0.0.1", "10.0.0.2"])

    def test_env_overrides_file(self):
        path = self._write_config("trusted_proxies: [10.0.0.1]\ntrusted_secret: a\n")
        env = {"FORWARDED_TRUSTED_PROXIES": "192.168.0.0/16", "FORWARDED_TRUSTED_SECRET": "b"}
        with patch.dict(os.environ, env):
            settings = load_settings(path)
        self.assertEqual(settings.trusted_proxies, ["192.168.0.0/16"])
        self.assertEqual(settings.trusted_secret, "b")

    def test_invalid_yaml(self):
        path = self._write_config("trusted_proxies: [unclosed\n")
        with self.assertRaises(ConfigError):
            load_settings(path)

    def test_top_level_must_be_mapping(self):
        path = self._write_config("- a\n- b\n")
        with self.assertRaises(ConfigError):
            load_settings(path)

    def test_invalid_values_are_all_reported(self):
        path = self._write_config(
            "header_map:\n  - header: Bad Header\n    directive: for\n  - nonsense\ntrusted_proxies: [nope]\n"
        )
        with self.assertRaises(ConfigError) as ctx:
            load_settings(path)
        self.assertEqual(len(ctx.exception.errors), 3)
        self.assertIsInstance(ctx.exception, ValueError)


class TestTrustPredicate(unittest.TestCase):
    def test_nobody_without_configuration(self):
        with self.assertLogs("forwarded.config", level="WARNING"):
            self.assertIs(ForwardedSettings().trust_predicate(), trust_nobody)

    def test_proxies_only(self):
        trust = ForwardedSettings(trusted_proxies=["10.0.0.0/8"]).trust_predicate()
        self.assertTrue(trust("10.1.1.1", {}))
        self.assertFalse(trust("11.1.1.1", {}))

    def test_secret_only(self):
        trust = ForwardedSettings(trusted_secret="X", secret_directive="token").trust_predicate()
        self.assertTrue(trust("1.2.3.4", {"token": "X"}))
        self.assertFalse(trust("1.2.3.4", {"secret": "X"}))

    def test_proxies_and_secret(self):
        trust = ForwardedSettings(trusted_proxies=["10.0.0.0/8"], trusted_secret="X").trust_predicate()
        self.assertTrue(trust("10.1.1.1", {"secret": "X"}))
        self.assertFalse(trust("10.1.1.1", {}))


if __name__ == "__main__":
    unittest.main()
