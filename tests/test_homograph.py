"""Tests for homograph number repair."""

from lcm_fixdata.fixers import HomographFixer
from lcm_fixdata.fixers.homograph import assign_homograph_numbers

from fwdata_builders import (
    allomorph,
    g,
    lang_project,
    lex_entry,
    morph_type,
    parse_records,
    prepare,
)

STEM = g(900)
SUFFIX = g(901)
ROOT = g(902)


def homograph_numbers(records):
    numbers = {}
    for element in records:
        if element.get("class") == "LexEntry":
            hn = element.find("HomographNumber")
            numbers[element.get("guid")] = hn.get("val") if hn is not None else None
    return numbers


def run_homograph_fixer(records, log):
    fixer = HomographFixer()
    prepare(fixer, records, log)
    for element in records:
        assert fixer.fix_record(element, log)
    return homograph_numbers(records)


def bank_lexicon(*entries):
    """LangProject, morph types and one entry/allomorph pair per (entry, form, hn, type)."""
    records = [
        lang_project(g(1)),
        morph_type(STEM),
        morph_type(SUFFIX, order=10),
        morph_type(ROOT, order=0),
    ]
    for index, (text, hn, mtype) in enumerate(entries):
        entry = g(100 + index)
        form = g(200 + index)
        records.append(lex_entry(entry, form, hn=hn))
        records.append(allomorph(form, entry, text, mtype))
    return parse_records(*records)


class TestAssignHomographNumbers:
    def test_fresh_group_numbered_in_order(self):
        """Test that unnumbered members are numbered in group order."""
        assert assign_homograph_numbers([["a", "b"]], {}) == {"a": "1", "b": "2"}

    def test_valid_number_kept(self):
        """Test that a valid existing number is kept."""
        numbers = assign_homograph_numbers([["a", "b"]], {"a": "0", "b": "1"})
        assert numbers == {"a": "2", "b": "1"}

    def test_first_claim_wins(self):
        """Test that the first member claiming a number keeps it."""
        numbers = assign_homograph_numbers([["a", "b"]], {"a": "1", "b": "1"})
        assert numbers == {"a": "1", "b": "2"}

    def test_out_of_range_and_garbage_reassigned(self):
        """Test that out-of-range and non-numeric numbers are replaced."""
        numbers = assign_homograph_numbers([["a", "b"]], {"a": "5", "b": "x"})
        assert numbers == {"a": "1", "b": "2"}

    def test_singletons_left_out(self):
        """Test that groups of one get no number."""
        assert assign_homograph_numbers([["a"], ["b", "c"]], {}) == {"b": "1", "c": "2"}

    def test_new_member_does_not_disturb_existing(self):
        """Adding a colliding entry keeps the slots already held."""
        numbers = assign_homograph_numbers([["a", "b", "c"]], {"a": "2", "b": "1"})
        assert numbers == {"a": "2", "b": "1", "c": "3"}

    def test_numbers_are_dense(self):
        """Test that a group always ends up numbered 1..N."""
        members = [f"e{i}" for i in range(6)]
        current = {"e0": "6", "e1": "6", "e2": "2", "e3": "9"}
        numbers = assign_homograph_numbers([members], current)
        assert sorted(int(n) for n in numbers.values()) == [1, 2, 3, 4, 5, 6]
        assert numbers["e0"] == "6"
        assert numbers["e2"] == "2"


class TestHomographFixer:
    def test_colliding_entries_numbered(self, fix_log):
        """Two 'bank' stems with no numbers become 1 and 2 in file order."""
        records = bank_lexicon(("bank", None, STEM), ("bank", None, STEM))
        numbers = run_homograph_fixer(records, fix_log)
        assert numbers == {g(100): "1", g(101): "2"}
        assert [e.description for e in fix_log.entries] == [
            f"Adjusted homograph number of LexEntry '{g(100)}' from 0 to 1.",
            f"Adjusted homograph number of LexEntry '{g(101)}' from 0 to 2.",
        ]

    def test_prior_valid_number_respected(self, fix_log):
        """Test that an entry already holding 1 keeps it."""
        records = bank_lexicon(("bank", "0", STEM), ("bank", "1", STEM))
        numbers = run_homograph_fixer(records, fix_log)
        assert numbers == {g(100): "2", g(101): "1"}
        assert len(fix_log) == 1

    def test_lone_entry_number_cleared(self, fix_log):
        """Test that an entry with no homographs is reset to 0."""
        records = bank_lexicon(("bank", "3", STEM), ("river", None, STEM))
        numbers = run_homograph_fixer(records, fix_log)
        assert numbers == {g(100): "0", g(101): None}
        assert fix_log.entries[0].description == (
            f"Adjusted homograph number of LexEntry '{g(100)}' from 3 to 0."
        )

    def test_already_correct_is_silent(self, fix_log):
        """Test that correct numbers produce no log entries."""
        records = bank_lexicon(("bank", "1", STEM), ("bank", "2", STEM), ("river", "0", STEM))
        run_homograph_fixer(records, fix_log)
        assert len(fix_log) == 0

    def test_secondary_order_separates_morph_types(self, fix_log):
        """Same text under sort orders 0 and 10 is two different words."""
        records = bank_lexicon(("bank", None, ROOT), ("bank", None, SUFFIX))
        numbers = run_homograph_fixer(records, fix_log)
        assert numbers == {g(100): None, g(101): None}

    def test_allomorph_without_morph_type_not_grouped(self, fix_log):
        """Test that an allomorph with no morph type is not a homograph candidate."""
        records = bank_lexicon(("bank", None, STEM), ("bank", None, None))
        run_homograph_fixer(records, fix_log)
        assert len(fix_log) == 0

    def test_citation_form_used_as_key(self, fix_log):
        """Test that the citation form replaces the lexeme form text."""
        records = parse_records(
            lang_project(g(1)),
            morph_type(STEM),
            lex_entry(g(100), g(200), citation="bank"),
            allomorph(g(200), g(100), "banks", STEM),
            lex_entry(g(101), g(201)),
            allomorph(g(201), g(101), "bank", STEM),
        )
        numbers = run_homograph_fixer(records, fix_log)
        assert numbers == {g(100): "1", g(101): "2"}

    def test_blank_citation_falls_back_to_form(self, fix_log):
        """Test that a blank citation form falls back to the lexeme form."""
        records = parse_records(
            lang_project(g(1)),
            morph_type(STEM),
            lex_entry(g(100), g(200), citation="  "),
            allomorph(g(200), g(100), "bank", STEM),
            lex_entry(g(101), g(201)),
            allomorph(g(201), g(101), "bank", STEM),
        )
        numbers = run_homograph_fixer(records, fix_log)
        assert numbers == {g(100): "1", g(101): "2"}

    def test_citation_and_form_share_key_with_sort_order(self, fix_log):
        """Citation 'bank' and lexeme form 'bank' of one ordered type collide."""
        records = parse_records(
            lang_project(g(1)),
            morph_type(ROOT, order=0),
            lex_entry(g(100), g(200), citation="bank"),
            allomorph(g(200), g(100), "bank", ROOT),
            lex_entry(g(101), g(201)),
            allomorph(g(201), g(101), "bank", ROOT),
        )
        numbers = run_homograph_fixer(records, fix_log)
        assert numbers == {g(100): "1", g(101): "2"}

    def test_citation_forms_of_different_morph_types_not_grouped(self, fix_log):
        """Equal citation forms under sort orders 0 and 10 stay apart."""
        records = parse_records(
            lang_project(g(1)),
            morph_type(ROOT, order=0),
            morph_type(SUFFIX, order=10),
            lex_entry(g(100), g(200), citation="bank", hn="0"),
            allomorph(g(200), g(100), "bank", ROOT),
            lex_entry(g(101), g(201), citation="bank", hn="0"),
            allomorph(g(201), g(101), "bank", SUFFIX),
        )
        numbers = run_homograph_fixer(records, fix_log)
        assert numbers == {g(100): "0", g(101): "0"}
        assert len(fix_log) == 0

    def test_bare_key_absorbs_later_entries(self, fix_log):
        """A morph type with no sort order claims the bare text first."""
        records = bank_lexicon(("bank", None, STEM), ("bank", None, ROOT))
        numbers = run_homograph_fixer(records, fix_log)
        assert numbers == {g(100): "1", g(101): "2"}

    def test_other_writing_system_ignored(self, fix_log):
        """Test that forms outside the homograph writing system are ignored."""
        records = parse_records(
            lang_project(g(1)),
            morph_type(STEM),
            lex_entry(g(100), g(200)),
            allomorph(g(200), g(100), "bank", STEM, ws="en"),
            lex_entry(g(101), g(201)),
            allomorph(g(201), g(101), "bank", STEM, ws="en"),
        )
        run_homograph_fixer(records, fix_log)
        assert len(fix_log) == 0

    def test_no_homograph_writing_system(self, fix_log):
        """Test that numbers are left alone without a homograph writing system."""
        records = parse_records(
            lang_project(g(1), homograph_ws=None),
            morph_type(STEM),
            lex_entry(g(100), g(200), hn="7"),
            allomorph(g(200), g(100), "bank", STEM),
            lex_entry(g(101), g(201)),
            allomorph(g(201), g(101), "bank", STEM),
        )
        numbers = run_homograph_fixer(records, fix_log)
        assert numbers == {g(100): "7", g(101): None}
        assert len(fix_log) == 0

    def test_reset_forgets_previous_pass(self, fix_log):
        """Test that reset drops what the previous pass gathered."""
        fixer = HomographFixer()
        prepare(fixer, bank_lexicon(("bank", None, STEM), ("bank", None, STEM)), fix_log)
        fixer.reset()
        records = bank_lexicon(("river", None, STEM))
        prepare(fixer, records, fix_log)
        for element in records:
            fixer.fix_record(element, fix_log)
        assert homograph_numbers(records) == {g(100): None}
