"""
Tests for value types, built-in verifiers and value containers.

Scope
- Integer verifiers: exact bit-width bounds, empty tokens, sign handling for
  unsigned types, whitespace rules.
- Double/bool/size/time verifiers, including non-finite and unit errors.
- Path/file/dir verifiers against a temporary directory.
- Canonical formatting round-trips.
- ValueList storage compatibility; Choices and Subcommands lookups.
"""
import os
import tempfile
import unittest
from unittest import TestCase

from clags import Config
from clags.values import *

INTEGERS = {
    ValueType.INT8: (-2 ** 7, 2 ** 7 - 1),
    ValueType.UINT8: (0, 2 ** 8 - 1),
    ValueType.INT32: (-2 ** 31, 2 ** 31 - 1),
    ValueType.UINT32: (0, 2 ** 32 - 1),
    ValueType.INT64: (-2 ** 63, 2 ** 63 - 1),
    ValueType.UINT64: (0, 2 ** 64 - 1),
}

NUMERIC = (
    ValueType.INT8,
    ValueType.UINT8,
    ValueType.INT32,
    ValueType.UINT32,
    ValueType.INT64,
    ValueType.UINT64,
    ValueType.DOUBLE,
    ValueType.SIZE,
    ValueType.TIME_S,
    ValueType.TIME_NS,
)


class IntegerVerifierTest(TestCase):
    def testBoundsAreInclusive(self):
        for value_type, (lower, upper) in INTEGERS.items():
            with self.subTest(value_type=value_type):
                self.assertEqual(value_type.verifier(str(lower)), lower)
                self.assertEqual(value_type.verifier(str(upper)), upper)

    def testOnePastBoundsFails(self):
        for value_type, (lower, upper) in INTEGERS.items():
            with self.subTest(value_type=value_type):
                with self.assertRaises(ValueError):
                    value_type.verifier(str(lower - 1))
                with self.assertRaises(ValueError):
                    value_type.verifier(str(upper + 1))

    def testEmptyTokenFailsForEveryNumericType(self):
        for value_type in NUMERIC:
            with self.subTest(value_type=value_type):
                with self.assertRaises(ValueError):
                    value_type.verifier("")

    def testUnsignedRejectsAnySign(self):
        for token in (" -1", "-1", "+1", " +1", "-0"):
            with self.subTest(token=token):
                with self.assertRaises(ValueError):
                    verify_uint64(token)

    def testSignedAcceptsExplicitSign(self):
        self.assertEqual(verify_int8("+5"), 5)
        self.assertEqual(verify_int32(" -17"), -17)

    def testLeadingWhitespaceSkippedTrailingRejected(self):
        self.assertEqual(verify_uint64("  42"), 42)
        with self.assertRaises(ValueError):
            verify_uint64("42 ")
        with self.assertRaises(ValueError):
            verify_uint64("42x")

    def testOnlyAsciiDigits(self):
        for token in ("1_000", "0x10", "1.0", "١٢"):
            with self.subTest(token=token):
                with self.assertRaises(ValueError):
                    verify_int64(token)


class DoubleAndBoolVerifierTest(TestCase):
    def testDoubleForms(self):
        self.assertEqual(verify_double("3.5"), 3.5)
        self.assertEqual(verify_double("-2e3"), -2000.0)
        self.assertEqual(verify_double(".5"), 0.5)
        self.assertEqual(verify_double("5."), 5.0)

    def testDoubleRejectsNonFinite(self):
        for token in ("nan", "inf", "-inf", "infinity", "1e400"):
            with self.subTest(token=token):
                with self.assertRaises(ValueError):
                    verify_double(token)

    def testBoolSpellings(self):
        for token in ("true", "YES", "y", "On", "1"):
            with self.subTest(token=token):
                self.assertIs(verify_bool(token), True)
        for token in ("false", "No", "n", "OFF", "0"):
            with self.subTest(token=token):
                self.assertIs(verify_bool(token), False)
        with self.assertRaises(ValueError):
            verify_bool("maybe")


class QuantityVerifierTest(TestCase):
    def testSizeUnits(self):
        self.assertEqual(verify_size("1000"), 1000)
        self.assertEqual(verify_size("10B"), 10)
        self.assertEqual(verify_size("1.4MB"), 1_400_000)
        self.assertEqual(verify_size("1.5KiB"), 1536)
        self.assertEqual(verify_size("2 GiB"), 2 * 2 ** 30)
        self.assertEqual(verify_size("15EiB"), 15 * 2 ** 60)

    def testSizeFailures(self):
        for token in ("1kb", "5XB", "-1", "MB", "16EiB", "nan", "inf"):
            with self.subTest(token=token):
                with self.assertRaises(ValueError):
                    verify_size(token)

    def testSizeTruncatesFractionalBytes(self):
        self.assertEqual(verify_size("1.9"), 1)

    def testLongMagnitudesAreNeverRoundedUp(self):
        self.assertEqual(verify_size("0.99999999999999999999999999999KB"), 999)
        self.assertEqual(verify_size("1.99999999999999999999999999999999999B"), 1)
        self.assertEqual(verify_time_s("1.9999999999999999999999999999s"), 1)
        self.assertEqual(verify_time_ns("0.9999999999999999999999999999999us"), 999)
        self.assertEqual(verify_size("18446744073709551615.999999999999999999"), 2 ** 64 - 1)

    def testTimeSeconds(self):
        self.assertEqual(verify_time_s("90"), 90)
        self.assertEqual(verify_time_s("2m"), 120)
        self.assertEqual(verify_time_s("1.5h"), 5400)
        self.assertEqual(verify_time_s("1d"), 86400)
        with self.assertRaises(ValueError):
            verify_time_s("500ms")

    def testTimeNanoseconds(self):
        self.assertEqual(verify_time_ns("3"), 3)
        self.assertEqual(verify_time_ns("1.5us"), 1500)
        self.assertEqual(verify_time_ns("2ms"), 2_000_000)
        self.assertEqual(verify_time_ns("1s"), 10 ** 9)
        self.assertEqual(verify_time_ns("1m"), 60 * 10 ** 9)

    def testTimeRejectsNonFinite(self):
        for verifier in (verify_time_s, verify_time_ns):
            for token in ("nan", "inf", ""):
                with self.subTest(verifier=verifier.__name__, token=token):
                    with self.assertRaises(ValueError):
                        verifier(token)


class FilesystemVerifierTest(TestCase):
    def setUp(self):
        self.directory = tempfile.TemporaryDirectory()
        self.folder = self.directory.name
        self.file = os.path.join(self.folder, "data.txt")
        with open(self.file, "w") as stream:
            stream.write("data")
        self.missing = os.path.join(self.folder, "missing")

    def tearDown(self):
        self.directory.cleanup()

    def testPathAcceptsAnyExistingEntry(self):
        self.assertEqual(verify_path(self.file), self.file)
        self.assertEqual(verify_path(self.folder), self.folder)
        with self.assertRaises(ValueError):
            verify_path(self.missing)
        with self.assertRaises(ValueError):
            verify_path("")

    def testFileAndDirCheckKind(self):
        self.assertEqual(verify_file(self.file), self.file)
        self.assertEqual(verify_dir(self.folder), self.folder)
        with self.assertRaises(ValueError):
            verify_file(self.folder)
        with self.assertRaises(ValueError):
            verify_dir(self.file)
        with self.assertRaises(ValueError):
            verify_file(self.missing)


class ValueTypeTest(TestCase):
    def testStorageIdentities(self):
        self.assertEqual(ValueType.FILE.storage, ValueType.STRING.storage)
        self.assertEqual(ValueType.SIZE.storage, ValueType.UINT64.storage)
        self.assertEqual(ValueType.TIME_NS.storage, ValueType.UINT64.storage)
        self.assertNotEqual(ValueType.INT8.storage, ValueType.INT32.storage)
        self.assertIsNone(ValueType.CUSTOM.storage)

    def testVerifierBindingKinds(self):
        self.assertIsNone(ValueType.CUSTOM.verifier)
        self.assertIsNone(ValueType.CHOICE.verifier)
        self.assertIsNone(ValueType.SUBCMD.verifier)
        self.assertIs(ValueType.UINT8.verifier, verify_uint8)

    def testCanonicalFormRoundTrips(self):
        cases = (
            (ValueType.SIZE, "1000"),
            (ValueType.SIZE, "1.5KiB"),
            (ValueType.TIME_NS, "2ms"),
            (ValueType.INT8, "-128"),
            (ValueType.DOUBLE, "0.1"),
            (ValueType.BOOL, "yes"),
            (ValueType.STRING, "text"),
        )
        for value_type, token in cases:
            with self.subTest(value_type=value_type, token=token):
                value = value_type.verifier(token)
                self.assertEqual(value_type.verifier(value_type.format(value)), value)

    def testFormatSpellings(self):
        self.assertEqual(ValueType.SIZE.format(1000), "1000")
        self.assertEqual(ValueType.BOOL.format(False), "false")
        self.assertEqual(ValueType.CHOICE.format(Choice("LIFO")), "LIFO")


class ValueListTest(TestCase):
    def testStartsEmpty(self):
        values = ValueList(ValueType.INT32)
        self.assertEqual(values.count, 0)
        self.assertEqual(len(values), 0)
        self.assertEqual(values, [])

    def testAcceptsSameStorageOnly(self):
        self.assertTrue(ValueList().accepts(ValueType.FILE))
        self.assertTrue(ValueList(ValueType.UINT64).accepts(ValueType.SIZE))
        self.assertFalse(ValueList(ValueType.INT8).accepts(ValueType.INT32))
        self.assertFalse(ValueList(ValueType.DOUBLE).accepts(ValueType.STRING))

    def testCustomAcceptsAnything(self):
        self.assertTrue(ValueList(ValueType.CUSTOM).accepts(ValueType.INT8))
        self.assertTrue(ValueList(ValueType.INT8).accepts(ValueType.CUSTOM))

    def testAppendAndClear(self):
        values = ValueList()
        values.append("a")
        values.append("b")
        self.assertEqual(list(values), ["a", "b"])
        self.assertEqual(values[-1], "b")
        values.clear()
        self.assertEqual(values.count, 0)

    def testRejectsBadValueTypes(self):
        with self.assertRaises(TypeError):
            ValueList("string")
        with self.assertRaises(TypeError):
            ValueList(ValueType.SUBCMD)


class ChoicesTest(TestCase):
    def testCaseInsensitiveMatch(self):
        choices = Choices("FIFO", "LIFO", case_insensitive=True)
        self.assertIs(choices.match("lifo"), choices[1])

    def testCaseSensitiveMatch(self):
        choices = Choices("FIFO", "LIFO")
        self.assertIsNone(choices.match("lifo"))
        self.assertIs(choices.match("LIFO"), choices[1])

    def testFirstMatchWinsAndIndexIsIdentityBased(self):
        choices = Choices(("fast", "first"), ("fast", "second"))
        self.assertIs(choices.match("fast"), choices[0])
        self.assertEqual(choices.index(choices[1]), 1)
        with self.assertRaises(ValueError):
            choices.index(Choice("fast"))

    def testEntryForms(self):
        choices = Choices(Choice("a", "alpha"), ("b", "beta"), "c")
        self.assertEqual([choice.value for choice in choices], ["a", "b", "c"])
        self.assertEqual(choices[0].description, "alpha")
        self.assertIsNone(choices[2].description)
        with self.assertRaises(TypeError):
            Choices(1)


class SubcommandsTest(TestCase):
    def testFindIsExact(self):
        push = Subcommand("push", "upload", Config())
        subcommands = Subcommands(push, ("pull", "download", Config()))
        self.assertIs(subcommands.find("push"), push)
        self.assertIsNone(subcommands.find("PUSH"))
        self.assertIsNone(subcommands.find("pus"))
        self.assertEqual(subcommands.index(subcommands[1]), 1)

    def testNameValidation(self):
        with self.assertRaises(ValueError):
            Subcommand("  ")
        with self.assertRaises(TypeError):
            Subcommand(3)


if __name__ == "__main__":
    unittest.main()
