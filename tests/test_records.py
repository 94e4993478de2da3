"""Tests for streaming access to project files."""

import pytest
from lxml import etree

from lcm_fixdata.exceptions import FixDataError, UnexpectedRootError
from lcm_fixdata.models import RefKind
from lcm_fixdata.records import (
    ProjectReader,
    detach_pointer,
    iter_pointers,
    normalize_guid,
    pointer_target,
    project_writer,
    record_class,
    record_guid,
)

from fwdata_builders import g, owning, refs, rt


class TestRecordHelpers:
    def test_normalize_guid_lowercases(self):
        """Test that guids are lowercased."""
        assert normalize_guid("ABCDEF01-2345-6789-ABCD-EF0123456789") == (
            "abcdef01-2345-6789-abcd-ef0123456789"
        )

    def test_record_guid_and_class(self):
        """Test reading a record's guid and class."""
        element = etree.fromstring(rt(g(1).upper(), "LexEntry"))
        assert record_guid(element) == g(1)
        assert record_class(element) == "LexEntry"

    def test_record_without_guid_raises(self):
        """Test that a record without a guid raises FixDataError."""
        with pytest.raises(FixDataError):
            record_guid(etree.fromstring('<rt class="LexEntry" />'))

    def test_iter_pointers_by_kind(self):
        """Test filtering pointers by ownership or reference."""
        element = etree.fromstring(
            rt(g(1), "LexEntry", owning("Senses", g(2)) + refs("MainEntries", g(3)))
        )
        assert [pointer_target(p) for p in iter_pointers(element)] == [g(2), g(3)]
        owned = [pointer_target(p) for p in iter_pointers(element, RefKind.OWNERSHIP)]
        assert owned == [g(2)]

    def test_iter_pointers_skips_untyped(self):
        """Test that pointers without a t attribute are skipped."""
        element = etree.fromstring(
            rt(g(1), "LexEntry", f'<Things><objsur guid="{g(2)}" /></Things>')
        )
        assert list(iter_pointers(element)) == []


class TestDetachPointer:
    def test_removes_empty_property(self):
        """The property element goes too once its last pointer is removed."""
        element = etree.fromstring(rt(g(1), "LexEntry", refs("MainEntries", g(2))))
        detach_pointer(next(iter_pointers(element)))
        assert element.find("MainEntries") is None

    def test_keeps_property_with_other_pointers(self):
        """Test that the property stays while other pointers remain."""
        element = etree.fromstring(rt(g(1), "LexEntry", refs("MainEntries", g(2), g(3))))
        detach_pointer(next(iter_pointers(element)))
        prop = element.find("MainEntries")
        assert prop is not None
        assert [pointer_target(p) for p in iter_pointers(prop)] == [g(3)]

    def test_never_removes_the_record(self):
        """Test that a pointer directly under rt never takes the record with it."""
        element = etree.fromstring(rt(g(1), "LexEntry", f'<objsur guid="{g(2)}" t="r" />'))
        detach_pointer(element[0])
        assert element.tag == "rt"
        assert len(element) == 0


class TestProjectReader:
    def test_yields_top_level_elements(self, project):
        """Test that the reader yields AdditionalFields and each rt."""
        path = project(rt(g(1), "LexDb"), rt(g(2), "LexEntry"), fields="<CustomField />")
        with ProjectReader(path) as reader:
            assert reader.root_attrib == {"version": "7000072"}
            tags = []
            guids = []
            for element in reader.elements():
                tags.append(element.tag)
                if element.tag == "rt":
                    guids.append(record_guid(element))
        assert tags == ["AdditionalFields", "rt", "rt"]
        assert guids == [g(1), g(2)]

    def test_nested_rt_is_not_top_level(self, project):
        """Test that an rt nested inside a record is not yielded."""
        path = project(rt(g(1), "LexDb", f'<Inner><rt guid="{g(9)}" /></Inner>'))
        with ProjectReader(path) as reader:
            elements = list(reader.elements())
        assert len(elements) == 1

    def test_wrong_root(self, tmp_path):
        """Test that a wrong root element raises UnexpectedRootError."""
        path = tmp_path / "bad.fwdata"
        path.write_text('<?xml version="1.0"?><project><rt /></project>')
        with pytest.raises(UnexpectedRootError) as exc_info:
            with ProjectReader(path):
                pass
        assert exc_info.value.found == "project"
        assert "expected <languageproject>" in str(exc_info.value)

    def test_elements_outside_with_block(self, project):
        """Test that reading outside the with block raises."""
        reader = ProjectReader(project(rt(g(1), "LexDb")))
        with pytest.raises(FixDataError):
            list(reader.elements())


class TestProjectWriter:
    def test_writes_elements_under_root(self, tmp_path):
        """Test that the writer puts elements under the project root."""
        path = tmp_path / "out.fwdata"
        with project_writer(path, {"version": "7000072"}) as writer:
            writer.write(etree.fromstring(rt(g(1), "LexDb")))
            writer.write(etree.fromstring(rt(g(2), "LexEntry")))
        root = etree.parse(str(path)).getroot()
        assert root.tag == "languageproject"
        assert root.get("version") == "7000072"
        assert [e.get("guid") for e in root] == [g(1), g(2)]

    def test_round_trip_through_reader(self, project, tmp_path):
        """Test that rewriting a rewritten file changes no bytes."""
        source = project(rt(g(1), "LexDb", refs("Things", g(2))), rt(g(2), "LexEntry"))
        first = tmp_path / "first.fwdata"
        second = tmp_path / "second.fwdata"
        for infile, outfile in ((source, first), (first, second)):
            with ProjectReader(infile) as reader, \
                    project_writer(outfile, reader.root_attrib) as writer:
                for element in reader.elements():
                    writer.write(element)
        assert first.read_bytes() == second.read_bytes()
