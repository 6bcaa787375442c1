"""
Unit tests for the value codec.
Tests: canonical encoding, digests, equality, wire mapping, decode guards.
"""
import unittest
from stepsim.core.errors import DecodeError
from stepsim.core.types import TaggedValue
from stepsim.simulator.codec import (
    MAX_DEPTH,
    UINT_MAX,
    Digest,
    Tup,
    UInt,
    decode,
    digest_of,
    encode,
    equals,
    format_value,
    from_wire,
    tag_of,
    to_wire,
)

COMMIT_WIRE = {
    "tag": "V_Digest",
    "contents": {
        "tag": "V_Tuple",
        "contents": [
            {"tag": "V_UInt", "contents": 4444},
            {"tag": "V_UInt", "contents": 0},
        ],
    },
}

class TestValues(unittest.TestCase):
    def test_uint_range(self):
        self.assertEqual(UInt(UINT_MAX).value, UINT_MAX)
        with self.assertRaises(ValueError):
            UInt(-1)
        with self.assertRaises(ValueError):
            UInt(UINT_MAX + 1)
        with self.assertRaises(ValueError):
            UInt(True)

    def test_tuple_stores_tuple(self):
        t = Tup([UInt(1), UInt(2)])
        self.assertIsInstance(t.items, tuple)

class TestEncoding(unittest.TestCase):
    def test_uint_layout(self):
        self.assertEqual(encode(UInt(1)), b"\x01" + (1).to_bytes(8, "big"))

    def test_encoding_is_canonical(self):
        a = Digest(Tup((UInt(4444), UInt(0))))
        b = Digest(Tup([UInt(4444), UInt(0)]))
        self.assertEqual(encode(a), encode(b))

    def test_nested_value_decodes_back(self):
        value = Tup((UInt(7), Digest(Tup((UInt(4444), UInt(0)))), Tup(())))
        self.assertTrue(equals(decode(encode(value)), value))

    def test_decode_rejects_truncation(self):
        with self.assertRaises(DecodeError):
            decode(b"")
        with self.assertRaises(DecodeError):
            decode(encode(UInt(5))[:-1])

    def test_decode_rejects_unknown_tag(self):
        with self.assertRaises(DecodeError):
            decode(b"\x09\x00")

    def test_decode_rejects_trailing_bytes(self):
        with self.assertRaises(DecodeError):
            decode(encode(UInt(5)) + b"\x00")

    def test_decode_rejects_forged_digest(self):
        raw = bytearray(encode(Digest(Tup((UInt(4444), UInt(0))))))
        raw[1] ^= 0xFF
        with self.assertRaises(DecodeError):
            decode(bytes(raw))

    def test_decode_rejects_deep_nesting(self):
        with self.assertRaises(DecodeError) as ctx:
            decode(b"\x03\x00\x00\x00\x01" * 5000)
        self.assertIn("nested too deeply", ctx.exception.message)

    def test_nesting_limit(self):
        value = UInt(1)
        for _ in range(MAX_DEPTH):
            value = Tup((value,))
        self.assertTrue(equals(decode(encode(value)), value))
        with self.assertRaises(DecodeError):
            decode(encode(Tup((value,))))

class TestDigest(unittest.TestCase):
    def test_digest_is_hash_of_encoding(self):
        import hashlib
        committed = Tup((UInt(4444), UInt(0)))
        self.assertEqual(digest_of(committed).digest_bytes, hashlib.sha256(encode(committed)).digest())

    def test_digest_depends_on_order(self):
        a = digest_of(Tup((UInt(4444), UInt(0))))
        b = digest_of(Tup((UInt(0), UInt(4444))))
        self.assertFalse(equals(a, b))

class TestEquality(unittest.TestCase):
    def test_structural_equality(self):
        self.assertTrue(equals(Tup((UInt(1), UInt(2))), Tup((UInt(1), UInt(2)))))
        self.assertFalse(equals(Tup((UInt(1), UInt(2))), Tup((UInt(2), UInt(1)))))
        self.assertFalse(equals(Tup((UInt(1),)), Tup((UInt(1), UInt(1)))))
        self.assertFalse(equals(UInt(1), Tup((UInt(1),))))
        self.assertFalse(equals(Digest(UInt(1)), UInt(1)))

    def test_rejects_foreign_values(self):
        with self.assertRaises(TypeError):
            equals(5, UInt(5))
        with self.assertRaises(TypeError):
            format_value("UInt(5)")

    def test_format(self):
        self.assertEqual(format_value(Digest(Tup((UInt(4444), UInt(0))))),
                         "Digest(Tuple(UInt(4444), UInt(0)))")
        self.assertEqual(tag_of(Tup(())), "V_Tuple")

class TestWire(unittest.TestCase):
    def test_from_wire_rejects_deep_nesting(self):
        obj = {"tag": "V_UInt", "contents": 1}
        for _ in range(3000):
            obj = {"tag": "V_Tuple", "contents": [obj]}
        with self.assertRaises(DecodeError):
            from_wire(obj)

    def test_from_wire_rejects_deep_tagged_value(self):
        tv = TaggedValue(tag="V_UInt", contents=1)
        for _ in range(MAX_DEPTH + 1):
            tv = TaggedValue(tag="V_Digest", contents=tv)
        with self.assertRaises(DecodeError) as ctx:
            from_wire(tv)
        self.assertIn("nested too deeply", ctx.exception.message)

    def test_digest_prints_committed_tuple(self):
        self.assertEqual(to_wire(Digest(Tup((UInt(4444), UInt(0))))), COMMIT_WIRE)

    def test_from_wire(self):
        self.assertTrue(equals(from_wire(COMMIT_WIRE), digest_of(Tup((UInt(4444), UInt(0))))))
        self.assertTrue(equals(from_wire({"tag": "V_UInt", "contents": 10}), UInt(10)))

    def test_from_wire_rejects_malformed(self):
        bad = [
            {"tag": "V_Bytes", "contents": 1},
            {"tag": "V_UInt", "contents": "10"},
            {"tag": "V_UInt", "contents": True},
            {"tag": "V_UInt", "contents": -1},
            {"tag": "V_Tuple", "contents": 5},
            {"tag": "V_Digest", "contents": [{"tag": "V_UInt", "contents": 1}]},
            {"tag": "V_UInt"},
            "V_UInt",
        ]
        for obj in bad:
            with self.assertRaises(DecodeError, msg=repr(obj)):
                from_wire(obj)

if __name__ == '__main__':
    unittest.main()
