"""
Tests for the WmlDocument package API and the conversion entry points.
"""

import base64
import io
import zipfile

import pytest

from docx_converter import (
    HtmlConversionResult,
    InvalidArgumentError,
    MissingMainDocumentError,
    PackageError,
    PartNotFoundError,
    WmlDocument,
    XmlParseError,
    convert_html_to_wml,
    convert_to_html,
)
from docx_converter.utils.xml_utils import w

from .helpers import make_docx, paragraph

TRACKED = (
    "<w:p><w:r><w:t xml:space=\"preserve\">Keep </w:t></w:r>"
    '<w:ins w:id="1" w:author="Ann"><w:r><w:t>added</w:t></w:r></w:ins>'
    '<w:del w:id="2" w:author="Ann"><w:r><w:delText>removed</w:delText></w:r></w:del></w:p>'
)


class TestConstruction:
    """Test cases for creating and serializing documents."""

    def test_from_bytes(self, simple_docx):
        document = WmlDocument.from_bytes(simple_docx, "report.docx")
        assert document.file_name == "report.docx"
        assert document.to_bytes() == simple_docx

    def test_default_file_name(self, simple_docx):
        assert WmlDocument(simple_docx).file_name == "document.docx"

    def test_rejects_non_bytes(self):
        with pytest.raises(InvalidArgumentError):
            WmlDocument("not bytes")

    def test_rejects_non_zip(self):
        with pytest.raises(PackageError) as info:
            WmlDocument(b"plain text")
        assert info.value.code == "INVALID_DOCX"

    def test_from_path(self, simple_docx, temp_dir):
        path = temp_dir / "input.docx"
        path.write_bytes(simple_docx)
        document = WmlDocument.from_path(path)
        assert document.file_name == "input.docx"
        assert document.to_bytes() == simple_docx

    def test_from_missing_path(self, temp_dir):
        with pytest.raises(PackageError):
            WmlDocument.from_path(temp_dir / "missing.docx")

    def test_base64_round_trip(self, simple_docx):
        document = WmlDocument(simple_docx)
        text = document.to_base64()
        assert base64.b64decode(text) == simple_docx
        assert WmlDocument.from_base64(text).to_bytes() == simple_docx

    def test_invalid_base64(self):
        with pytest.raises(InvalidArgumentError):
            WmlDocument.from_base64("not base64 !!")

    def test_save(self, simple_docx, temp_dir):
        target = WmlDocument(simple_docx).save(temp_dir / "out.docx")
        assert target.read_bytes() == simple_docx

    def test_repr(self, simple_docx):
        assert "document.docx" in repr(WmlDocument(simple_docx))


class TestPartAccess:
    """Test cases for reading package parts."""

    def test_main_document_part(self, simple_docx):
        document = WmlDocument(simple_docx)
        assert document.main_document_part == "word/document.xml"
        assert "word/styles.xml" in document.part_names

    def test_part_bytes_and_text(self, simple_docx):
        document = WmlDocument(simple_docx)
        assert b"Normal" in document.get_part_bytes("word/styles.xml")
        assert "Normal" in document.get_part_text("/word/styles.xml")
        assert document.get_part_bytes("word/missing.xml") is None

    def test_main_document_xml(self, simple_docx):
        root = WmlDocument(simple_docx).get_main_document_xml()
        assert root.tag == w("document")

    def test_main_document_text_includes_tables(self, build_docx):
        body = (
            paragraph("Intro")
            + "<w:tbl><w:tr><w:tc>" + paragraph("Cell") + "</w:tc></w:tr></w:tbl>"
            + "<w:p><w:r><w:t>A</w:t><w:tab/><w:t>B</w:t><w:br/><w:t>C</w:t></w:r></w:p>"
        )
        text = WmlDocument(build_docx(body)).get_main_document_text()
        assert text.paragraphs == ("Intro", "Cell", "A\tB\nC")
        assert text.text == "Intro\nCell\nA\tB\nC"

    def test_missing_main_document(self, temp_dir):
        path = temp_dir / "empty.docx"
        with zipfile.ZipFile(path, "w") as archive:
            archive.writestr("[Content_Types].xml", "<Types/>")
        document = WmlDocument.from_path(path)
        with pytest.raises(MissingMainDocumentError):
            document.get_main_document_xml()

    def test_content_parts(self, build_docx):
        data = build_docx(
            paragraph("Body"),
            footnotes='<w:footnote w:id="1"><w:p/></w:footnote>',
            headers={"rIdHeader": paragraph("Head")},
        )
        parts = WmlDocument(data).content_parts()
        assert parts[0] == "word/document.xml"
        assert set(parts[1:]) == {"word/footnotes.xml", "word/header1.xml"}
        assert "word/styles.xml" not in parts


class TestEditing:
    """Test cases for the editing helpers."""

    def test_replace_parts_returns_new_document(self, simple_docx):
        original = WmlDocument(simple_docx)
        changed = original.replace_parts({"word/extra.xml": "<extra/>"})
        assert changed is not original
        assert changed.get_part_text("word/extra.xml") == "<extra/>"
        assert original.get_part_bytes("word/extra.xml") is None

    def test_replace_parts_removes_with_none(self, simple_docx):
        changed = WmlDocument(simple_docx).replace_parts({"word/styles.xml": None})
        assert "word/styles.xml" not in changed.part_names

    def test_replace_parts_rejects_unknown_content(self, simple_docx):
        with pytest.raises(InvalidArgumentError):
            WmlDocument(simple_docx).replace_parts({"word/extra.xml": 42})

    def test_replace_part_xml(self, simple_docx):
        document = WmlDocument(simple_docx)
        root = document.get_main_document_xml()
        next(root.iter(w("t"))).text = "Changed"
        changed = document.replace_part_xml("word/document.xml", root)
        assert changed.get_main_document_text().text == "Changed"

    def test_replace_part_xml_unknown_part(self, simple_docx):
        with pytest.raises(PartNotFoundError):
            WmlDocument(simple_docx).replace_part_xml("word/nothing.xml", "<x/>")

    def test_replace_part_xml_malformed(self, simple_docx):
        with pytest.raises(XmlParseError):
            WmlDocument(simple_docx).replace_part_xml("word/document.xml", "<broken")

    def test_accept_revisions(self, build_docx):
        document = WmlDocument(build_docx(TRACKED, headers={"rIdHeader": TRACKED}))
        assert document.has_tracked_revisions()
        accepted = document.accept_revisions()
        assert not accepted.has_tracked_revisions()
        assert accepted.get_main_document_text().text == "Keep added"
        assert "removed" not in accepted.get_part_text("word/header1.xml")
        assert document.has_tracked_revisions()

    def test_simplify_markup(self, build_docx):
        body = (
            '<w:p w:rsidR="00AB"><w:smartTag w:uri="urn:x" w:element="city">'
            "<w:r><w:t>Oslo</w:t></w:r></w:smartTag></w:p>"
        )
        simplified = WmlDocument(build_docx(body)).simplify_markup()
        xml = simplified.get_part_text("word/document.xml")
        assert "smartTag" not in xml
        assert "rsidR" not in xml
        assert simplified.get_main_document_text().text == "Oslo"

    def test_simplify_markup_with_mapping(self, build_docx):
        body = '<w:p><w:bookmarkStart w:id="1" w:name="x"/><w:bookmarkEnd w:id="1"/></w:p>'
        document = WmlDocument(build_docx(body))
        assert "bookmarkStart" in document.simplify_markup().get_part_text("word/document.xml")
        simplified = document.simplify_markup({"remove_bookmarks": True})
        assert "bookmarkStart" not in simplified.get_part_text("word/document.xml")

    def test_simplify_markup_unknown_option(self, simple_docx):
        with pytest.raises(InvalidArgumentError):
            WmlDocument(simple_docx).simplify_markup({"remove_everything": True})

    def test_search_and_replace(self, build_docx):
        body = '<w:p><w:r><w:t>Dear </w:t></w:r><w:r><w:t xml:space="preserve">cust</w:t></w:r><w:r><w:t>omer</w:t></w:r></w:p>'
        document = WmlDocument(build_docx(body))
        replaced = document.search_and_replace("customer", "Ms Smith")
        assert replaced.get_main_document_text().text == "Dear Ms Smith"
        assert document.get_main_document_text().text == "Dear customer"


class TestConversionEntryPoints:
    """Test cases for convert_to_html and convert_html_to_wml."""

    def test_document_method_and_function_agree(self, simple_docx):
        document = WmlDocument(simple_docx)
        from_method = document.convert_to_html(page_title="Report")
        from_function = convert_to_html(simple_docx, {"page_title": "Report"})
        assert isinstance(from_method, HtmlConversionResult)
        assert from_method.html == from_function.html
        assert "<title>Report</title>" in from_method.html
        assert "Test paragraph" in from_method.html

    def test_convert_rejects_other_types(self):
        with pytest.raises(InvalidArgumentError):
            convert_to_html("word/document.xml")

    def test_unknown_setting(self, simple_docx):
        with pytest.raises(InvalidArgumentError):
            convert_to_html(simple_docx, not_a_setting=True)

    def test_html_to_wml(self):
        document = convert_html_to_wml("<html><body><h1>Title</h1><p>Body text</p></body></html>")
        assert isinstance(document, WmlDocument)
        assert document.get_main_document_text().paragraphs == ("Title", "Body text")
        assert document.warnings == []

    def test_html_to_wml_file_name(self):
        document = convert_html_to_wml("<p>x</p>", {"file_name": "out.docx"})
        assert document.file_name == "out.docx"

    def test_html_to_wml_rejects_bad_template(self):
        with pytest.raises(InvalidArgumentError):
            convert_html_to_wml("<p>x</p>", template="template.docx")

    def test_html_to_wml_with_template(self, simple_docx):
        document = convert_html_to_wml("<p>New content</p>", template=WmlDocument(simple_docx))
        assert document.get_main_document_text().text == "New content"
        assert "Normal" in document.get_part_text("word/styles.xml")

    @pytest.mark.integration
    def test_round_trip_keeps_text_and_emphasis(self):
        xhtml = (
            "<html><body><p>Hello <b>World</b></p>"
            "<ul><li>one</li><li>two</li></ul>"
            "<table><tr><td>a</td><td>b</td></tr></table></body></html>"
        )
        document = convert_html_to_wml(xhtml)
        result = document.convert_to_html()
        assert "<strong>World</strong>" in result.html
        assert result.html.count("<li") >= 2
        assert "<table" in result.html
        text = document.get_main_document_text().text
        for piece in ("Hello World", "one", "two", "a", "b"):
            assert piece in text

    @pytest.mark.integration
    def test_wml_round_trip_keeps_bold_and_italic(self, build_docx):
        source = build_docx(paragraph("Strong words", rpr="<w:b/><w:i/>") + paragraph("plain"))
        html = convert_to_html(source).html
        document = convert_html_to_wml(html)
        root = document.get_main_document_xml()
        runs = [run for run in root.iter(w("r")) if run.findtext(w("t")) == "Strong words"]
        assert len(runs) == 1
        rpr = runs[0].find(w("rPr"))
        assert rpr.find(w("b")) is not None
        assert rpr.find(w("i")) is not None
        assert document.get_main_document_text().paragraphs == ("Strong words", "plain")


def zip_bytes(files):
    output = io.BytesIO()
    with zipfile.ZipFile(output, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return output.getvalue()


CONTENT_TYPES = (
    '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
    '<Default Extension="xml" ContentType="application/xml"/></Types>'
)


def root_rels(target=None):
    rel = ""
    if target:
        rel = (
            '<Relationship Id="rId1" Type="http://schemas.openxmlformats.org/officeDocument/2006/'
            f'relationships/officeDocument" Target="{target}"/>'
        )
    return f'<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">{rel}</Relationships>'


class TestDetectType:
    """Test cases for package type detection."""

    def test_docx(self, simple_docx):
        assert WmlDocument(simple_docx).detect_type() == "docx"

    @pytest.mark.parametrize(
        "target, expected",
        [("xl/workbook.xml", "xlsx"), ("/ppt/presentation.xml", "pptx"), ("custom/main.xml", "opc")],
    )
    def test_office_document_target(self, target, expected):
        data = zip_bytes({"[Content_Types].xml": CONTENT_TYPES, "_rels/.rels": root_rels(target)})
        assert WmlDocument(data).detect_type() == expected

    def test_package_without_office_document(self):
        data = zip_bytes({"[Content_Types].xml": CONTENT_TYPES, "_rels/.rels": root_rels()})
        assert WmlDocument(data).detect_type() == "opc"

    def test_plain_zip(self):
        assert WmlDocument(zip_bytes({"notes.txt": "hello"})).detect_type() == "unknown"

    def test_unreadable_root_relationships(self):
        data = zip_bytes({"[Content_Types].xml": CONTENT_TYPES, "_rels/.rels": "<Relationships"})
        assert WmlDocument(data).detect_type() == "unknown"
