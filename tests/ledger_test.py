import unittest

from loadspeed.errors import UnknownResourceError
from loadspeed.ledger import ResourceLedger, elapsed_ms, truncate_ms

from fakes import at


class TestResourceLedger(unittest.TestCase):
    def setUp(self):
        self.ledger = ResourceLedger()
        self.ledger.create(1, "GET", "http://x/", at(0))

    def test_response_sets_duration(self):
        entry = self.ledger.record_response(1, at(50), 200)

        self.assertEqual(entry.response_status, 200)
        self.assertEqual(entry.response_time, at(50))
        self.assertEqual(entry.duration, 50)

    def test_no_duration_without_response(self):
        self.assertIsNone(self.ledger.get(1).duration)
        self.assertNotIn("duration", self.ledger.to_dict()["1"])

    def test_error_and_timeout_coexist_with_response(self):
        """Scenario: a resource responds, then errors and times out."""
        self.ledger.record_response(1, at(20), 200)
        self.ledger.record_error(1, 5, "Operation canceled")
        self.ledger.record_timeout(1)

        data = self.ledger.to_dict()["1"]
        self.assertEqual(data["responseStatus"], 200)
        self.assertEqual(data["duration"], 20)
        self.assertEqual(data["resourceErrorCode"], 5)
        self.assertEqual(data["resourceErrorString"], "Operation canceled")
        self.assertTrue(data["resourceTimeout"])

    def test_unknown_id_is_a_protocol_violation(self):
        with self.assertRaises(UnknownResourceError) as cm:
            self.ledger.record_response(99, at(10), 200)
        self.assertEqual(cm.exception.resource_id, 99)

        with self.assertRaises(UnknownResourceError):
            self.ledger.record_error(99, 1, "boom")
        with self.assertRaises(UnknownResourceError):
            self.ledger.record_timeout(99)

        # No phantom entry is created
        self.assertNotIn(99, self.ledger)
        self.assertEqual(len(self.ledger), 1)

    def test_create_twice_overwrites(self):
        self.ledger.create(1, "POST", "http://y/", at(5))

        self.assertEqual(len(self.ledger), 1)
        self.assertEqual(self.ledger.get(1).method, "POST")

    def test_serialized_in_fetch_order(self):
        self.ledger.create(10, "GET", "http://x/b.js", at(1))
        self.ledger.create(2, "GET", "http://x/c.css", at(2))

        self.assertEqual(list(self.ledger.to_dict()), ["1", "10", "2"])
        self.assertEqual([e.resource_id for e in self.ledger], [1, 10, 2])

    def test_times_stored_at_millisecond_precision(self):
        self.ledger.create(2, "GET", "http://x/a.js", at(0.9))
        entry = self.ledger.record_response(2, at(50.1), 200)

        self.assertEqual(entry.request_time, at(0))
        self.assertEqual(entry.response_time, at(50))
        self.assertEqual(entry.duration, 50)

    def test_truncate_ms(self):
        self.assertEqual(truncate_ms(at(12.999)), at(12))
        self.assertEqual(truncate_ms(at(7)), at(7))

    def test_elapsed_ms(self):
        self.assertEqual(elapsed_ms(at(0), at(1234)), 1234)
        self.assertEqual(elapsed_ms(at(100), at(100)), 0)


if __name__ == "__main__":
    unittest.main()
