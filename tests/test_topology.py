"""
Unit tests for drive letter normalization and the topology walker.
"""

import unittest

from core.exceptions import QueryMalformedError, ProviderUnavailableError
from drive_inspector.core.models import DiagnosticRecord
from drive_inspector.core.topology import TopologyWalker, normalize_drive_letter
from tests.helpers.fake_providers import FakeSession


class TestNormalizeDriveLetter(unittest.TestCase):
    """Accepted drive letter spellings."""

    def test_accepted_forms(self):
        for value in ("C", "c", "C:", "c:", "C:\\", " d: "):
            with self.subTest(value=value):
                self.assertRegex(normalize_drive_letter(value), r"^[CD]:$")

    def test_rejected_forms(self):
        for value in ("", "CD", "C:\\Windows", "7", "C:/", None):
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    normalize_drive_letter(value)


class TestTopologyWalker(unittest.TestCase):
    """Drive letter to physical disk index."""

    def setUp(self):
        self.record = DiagnosticRecord("topology")

    def test_forward_walk(self):
        session = FakeSession(drive_map={"C:": 2})

        index = TopologyWalker(session).find_physical_disk_index("C:", self.record)

        self.assertEqual(index, 2)
        self.assertEqual(session.calls['all_partitions'], 0)

    def test_reverse_lookup_when_forward_walk_fails(self):
        session = FakeSession(drive_map={"C:": 0, "E:": 1},
                              failures={'logical_disk_partitions': QueryMalformedError("Invalid query")})

        index = TopologyWalker(session).find_physical_disk_index("E:", self.record)

        self.assertEqual(index, 1)
        self.assertTrue(any("Forward walk failed" in note for note in self.record.notes))

    def test_both_walks_fail(self):
        session = FakeSession(drive_map={"C:": 0}, failures={
            'logical_disk_partitions': ProviderUnavailableError("access denied"),
            'all_partitions': ProviderUnavailableError("access denied"),
        })

        self.assertIsNone(TopologyWalker(session).find_physical_disk_index("C:", self.record))

    def test_reverse_lookup_after_unexpected_forward_error(self):
        session = FakeSession(drive_map={"C:": 2},
                              failures={'logical_disk_partitions': RuntimeError("provider quirk")})

        index = TopologyWalker(session).find_physical_disk_index("C:", self.record)

        self.assertEqual(index, 2)
        self.assertEqual(session.calls['all_partitions'], 1)
        self.assertTrue(any("RuntimeError" in note for note in self.record.notes))

    def test_unexpected_reverse_lookup_error_is_not_found(self):
        session = FakeSession(drive_map={"C:": 0}, failures={
            'logical_disk_partitions': AttributeError("DeviceID"),
            'all_partitions': AttributeError("DiskIndex"),
        })

        self.assertIsNone(TopologyWalker(session).find_physical_disk_index("C:", self.record))

    def test_unknown_drive(self):
        session = FakeSession(drive_map={"C:": 0})

        self.assertIsNone(TopologyWalker(session).find_physical_disk_index("Z:"))
        self.assertEqual(session.calls['all_partitions'], 1)


if __name__ == '__main__':
    unittest.main()
