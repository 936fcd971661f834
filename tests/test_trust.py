"""Tests for the ready-made trust predicates"""

import ipaddress
import unittest

from forwarded_headers.parser import parse_forwarded
from forwarded_headers.resolver import resolve_trusted_hop
from forwarded_headers.trust import (
    parse_address,
    trust_all_of,
    trust_any_of,
    trust_networks,
    trust_nobody,
    trust_secret,
)


class TestParseAddress(unittest.TestCase):
    def test_forms(self):
        cases = {
            "10.0.0.1": "10.0.0.1",
            "10.0.0.1:8080": "10.0.0.1",
            "2001:db8::1": "2001:db8::1",
            "[2001:db8::1]": "2001:db8::1",
            "[2001:db8::1]:4711": "2001:db8::1",
        }
        for value, expected in cases.items():
            with self.subTest(value):
                self.assertEqual(parse_address(value), ipaddress.ip_address(expected))

    def test_not_an_address(self):
        for value in ["unknown", "_hidden", "", "[2001:db8::1", "example.com"]:
            with self.subTest(value):
                self.assertIsNone(parse_address(value))


class TestTrustNetworks(unittest.TestCase):
    def setUp(self):
        self.trust = trust_networks(["10.0.0.0/24", "::1"])

    def test_inside_network(self):
        self.assertTrue(self.trust("10.0.0.7", {}))
        self.assertTrue(self.trust("[::1]:9000", {}))

    def test_outside_network(self):
        self.assertFalse(self.trust("10.0.1.7", {}))
        self.assertFalse(self.trust("2001:db8::1", {}))
        self.assertFalse(self.trust("unknown", {}))

    def test_invalid_network_raises(self):
        with self.assertRaises(ValueError):
            trust_networks(["not-a-network"])

    def test_chain_with_networks(self):
        hops = parse_forwarded('for=30.16.61.2;proto=https, for="[::1]";path=/b')
        hop = resolve_trusted_hop("10.0.0.1", hops, self.trust)
        self.assertEqual(hop, {"for": "30.16.61.2", "proto": "https"})

    def test_trailing_comma_does_not_hide_hop(self):
        hops = parse_forwarded("for=1.2.3.4;proto=https,")
        hop = resolve_trusted_hop("10.0.0.1", hops, trust_networks(["10.0.0.0/8"]))
        self.assertEqual(hop, {"for": "1.2.3.4", "proto": "https"})


class TestTrustSecret(unittest.TestCase):
    def test_matching_secret(self):
        trust = trust_secret("X")
        self.assertTrue(trust("anything", {"secret": "X"}))
        self.assertFalse(trust("anything", {"secret": "Y"}))
        self.assertFalse(trust("anything", {}))

    def test_custom_directive(self):
        trust = trust_secret("abc", directive="token")
        self.assertTrue(trust("x", {"token": "abc"}))
        self.assertFalse(trust("x", {"secret": "abc"}))

    def test_empty_secret_rejected(self):
        with self.assertRaises(ValueError):
            trust_secret("")


class TestCombinators(unittest.TestCase):
    def test_all_of(self):
        trust = trust_all_of(trust_networks(["10.0.0.0/8"]), trust_secret("X"))
        self.assertTrue(trust("10.1.2.3", {"secret": "X"}))
        self.assertFalse(trust("10.1.2.3", {}))
        self.assertFalse(trust("1.2.3.4", {"secret": "X"}))

    def test_any_of(self):
        trust = trust_any_of(trust_networks(["10.0.0.0/8"]), trust_secret("X"))
        self.assertTrue(trust("10.1.2.3", {}))
        self.assertTrue(trust("1.2.3.4", {"secret": "X"}))
        self.assertFalse(trust("1.2.3.4", {}))

    def test_nobody(self):
        self.assertFalse(trust_nobody("10.0.0.1", {"secret": "X"}))


if __name__ == "__main__":
    unittest.main()
