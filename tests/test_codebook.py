import random

import pytest
from bitarray import bitarray

from codebook import CodeBook, CodeEntry, CodeSet, MissingSymbolError


def abc_book():
    book = CodeBook()
    book.insert('a', bitarray('0'))
    book.insert('b', bitarray('10'))
    book.insert('c', bitarray('11'))
    return book


# CodeSet

def test_code_set_keeps_keys_sorted_and_grows():
    bucket = CodeSet()
    assert bucket.capacity == 2
    for key in "dbeac":
        bucket.add(CodeEntry(key, bitarray('1')))

    assert [e.key for e in bucket] == ['a', 'b', 'c', 'd', 'e']
    assert len(bucket) == 5
    assert bucket.capacity == 7  # 2 -> 4 -> 7


def test_code_set_overwrite_replaces_in_place():
    bucket = CodeSet()
    bucket.add(CodeEntry('a', bitarray('0')))
    bucket.add(CodeEntry('c', bitarray('0')))
    bucket.add(CodeEntry('a', bitarray('11')))

    assert len(bucket) == 2
    assert bucket.get('a').data == bitarray('11')
    assert bucket.entry_at(0).key == 'a'
    assert bucket.entry_at(1).key == 'c'


def test_code_set_lookup_misses():
    bucket = CodeSet()
    assert bucket.get('a') is None
    assert not bucket.contains_key('a')
    bucket.add(CodeEntry('m', bitarray('0')))
    assert bucket.get('a') is None
    assert bucket.get('z') is None
    assert bucket.entry_at(-1) is None
    assert bucket.entry_at(1) is None
    assert str(bucket) == "[m=0]"


# CodeBook

def test_encode_concrete_scenario():
    book = abc_book()
    assert book.encode("abc") == bitarray('01011')
    assert book.encode("") == bitarray()


def test_encode_skips_unmapped_symbols():
    book = abc_book()
    assert book.encode("abz") == book.encode("ab") == bitarray('010')


def test_strict_encode_raises_missing_symbol():
    book = abc_book()
    with pytest.raises(MissingSymbolError) as exc:
        book.encode("abzy", strict=True)
    assert exc.value.symbol == 'z'
    assert isinstance(exc.value, KeyError)
    assert book.encode("cab", strict=True) == bitarray('11010')


def test_encode_does_not_mutate_stored_codes():
    book = abc_book()
    book.encode("aaa")
    assert book.lookup('a') == bitarray('0')


def test_contains_and_lookup():
    book = abc_book()
    assert book.contains('a')
    assert 'b' in book
    assert not book.contains('q')  # shares a bucket with 'a'
    assert not book.contains('z')
    assert 'ab' not in book
    assert book.lookup('c') == bitarray('11')
    assert book.lookup('q') is None
    assert book.lookup('z') is None


def test_contains_all():
    book = abc_book()
    assert book.contains_all("abcabc")
    assert book.contains_all("")
    assert not book.contains_all("abx")


def test_insert_rejects_non_characters():
    book = CodeBook()
    with pytest.raises(ValueError):
        book.insert("ab", bitarray('0'))
    with pytest.raises(ValueError):
        book.insert("", bitarray('0'))
    assert len(book) == 0


def test_overwrite_keeps_one_entry_and_bucket_count():
    book = CodeBook()
    book.insert('a', bitarray('0'))
    occupied = book.occupied
    book.insert('a', bitarray('111'))

    assert len(book) == 1
    assert book.occupied == occupied
    assert book.lookup('a') == bitarray('111')
    assert list(book) == ['a']


def test_load_factor_triggers_resize():
    book = CodeBook()
    for key in "abcdefghi":  # nine separate buckets, 9/16 is under the limit
        book.insert(key, bitarray('1'))
    assert book.capacity == 16
    assert book.resize_count == 0

    book.insert('j', bitarray('1'))  # 10/16 > 0.6
    assert book.capacity == 25
    assert book.resize_count == 1
    assert book.occupied == 10
    assert book.load_factor == pytest.approx(0.4)


def test_crowded_bucket_triggers_single_resize():
    book = CodeBook()
    keys = [chr(0x100 + 16 * i) for i in range(5)]  # all land in bucket 0
    for key in keys[:4]:
        book.insert(key, bitarray('0'))
    assert book.occupied == 1
    assert book.max_bucket_size == 4

    book.insert(keys[4], bitarray('0'))
    assert book.resize_count == 1
    assert book.capacity == 25
    assert book.max_bucket_size == 1
    assert sorted(book) == sorted(keys)


def test_growth_preserves_every_entry():
    rng = random.Random(7)
    keys = [chr(cp) for cp in rng.sample(range(0x20, 0x3000), 500)]
    expected = {}
    book = CodeBook()
    for key in keys:
        code = bitarray([rng.random() < 0.5 for _ in range(rng.randint(1, 12))])
        book.insert(key, code)
        expected[key] = code

    assert book.resize_count > 0
    assert len(book) == len(expected)
    for key, code in expected.items():
        assert book.contains(key)
        assert book.lookup(key) == code


def test_buckets_stay_sorted_after_many_inserts():
    rng = random.Random(3)
    book = CodeBook()
    for _ in range(300):
        book.insert(chr(rng.randrange(0x20, 0x800)), bitarray('01'))

    for bucket in book.buckets():
        keys = [e.key for e in bucket]
        assert all(a < b for a, b in zip(keys, keys[1:]))


def test_iteration_is_complete_without_repeats():
    rng = random.Random(11)
    inserted = set()
    book = CodeBook()
    for _ in range(400):
        key = chr(rng.randrange(0x41, 0x1000))
        inserted.add(key)
        book.insert(key, bitarray('1'))

    keys = list(book)
    assert len(keys) == len(set(keys))
    assert set(keys) == inserted
    assert len(book) == len(inserted)


def test_iteration_order_follows_buckets():
    book = CodeBook()
    book.insert('q', bitarray('10'))  # 113 % 16 == 1
    book.insert('b', bitarray('11'))  # 98 % 16 == 2
    book.insert('a', bitarray('0'))   # 97 % 16 == 1
    assert list(book) == ['a', 'q', 'b']
    assert str(book) == "[\n[a=0,q=10],\n[b=11]\n]"


def test_exhausted_iterator_raises():
    it = iter(abc_book())
    assert [next(it) for _ in range(3)] == ['a', 'b', 'c']
    assert not it.has_next()
    with pytest.raises(StopIteration):
        next(it)


def test_empty_book():
    book = CodeBook()
    assert list(book) == []
    assert len(book) == 0
    assert book.max_bucket_size == 0
    assert str(book) == "[\n\n]"
    assert book.encode("abc") == bitarray()


def test_from_mapping():
    book = CodeBook.from_mapping({'x': bitarray('0'), 'y': bitarray('1')})
    assert book.encode("yx") == bitarray('10')
