"""
Tests for sort keys and the server-side sort control.
"""

import unittest

from pyasn1.codec.ber import decoder

from ldapsession.controls import (
    BerSortKeyList,
    ServerSideSortControl,
    SortKey,
    SortOrder,
    build_sort_control_value,
    parse_sorting_string,
    sorting_string,
)


class TestSortingString(unittest.TestCase):

    def test_descending_then_ascending(self):
        keys = [("displayName", SortOrder.DESC), ("initials", SortOrder.ASC)]
        self.assertEqual(sorting_string(keys), "-displayName initials")

    def test_no_keys(self):
        self.assertEqual(sorting_string([]), "")

    def test_order_defaults_to_ascending(self):
        self.assertEqual(sorting_string([SortKey("cn")]), "cn")

    def test_ordering_rule(self):
        key = SortKey("cn", SortOrder.DESC, "caseIgnoreOrderingMatch")
        self.assertEqual(key.token, "-cn:caseIgnoreOrderingMatch")

    def test_parse(self):
        self.assertEqual(
            parse_sorting_string("-displayName initials:2.5.13.3"),
            [
                SortKey("displayName", SortOrder.DESC),
                SortKey("initials", SortOrder.ASC, "2.5.13.3"),
            ],
        )

    def test_parse_empty_key(self):
        with self.assertRaises(ValueError):
            SortKey.parse("-")


class TestSortControl(unittest.TestCase):

    def test_ber_value(self):
        value = build_sort_control_value(
            [SortKey("displayName", SortOrder.DESC), SortKey("initials")]
        )
        decoded, rest = decoder.decode(value, asn1Spec=BerSortKeyList())
        self.assertEqual(rest, b"")
        self.assertEqual(len(decoded), 2)
        self.assertEqual(bytes(decoded[0]["attributeType"]), b"displayName")
        self.assertTrue(bool(decoded[0]["reverseOrder"]))
        self.assertEqual(bytes(decoded[1]["attributeType"]), b"initials")
        self.assertFalse(bool(decoded[1]["reverseOrder"]))

    def test_ordering_rule_is_encoded(self):
        value = build_sort_control_value([SortKey("cn", ordering_rule="2.5.13.3")])
        decoded, _ = decoder.decode(value, asn1Spec=BerSortKeyList())
        self.assertEqual(bytes(decoded[0]["orderingRule"]), b"2.5.13.3")

    def test_no_keys_is_empty(self):
        self.assertEqual(build_sort_control_value([]), b"")

    def test_control_from_string(self):
        control = ServerSideSortControl.from_sorting_string("-cn sn")
        self.assertEqual(control.controlType, "1.2.840.113556.1.4.473")
        self.assertFalse(control.criticality)
        self.assertEqual(
            control.sort_keys, [SortKey("cn", SortOrder.DESC), SortKey("sn")]
        )
        self.assertEqual(
            control.encodeControlValue(),
            build_sort_control_value(control.sort_keys),
        )
