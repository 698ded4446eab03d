"""
Tests for WML to HTML rendering.
"""

import pytest

from docx_converter import convert_to_html
from docx_converter.engine.numbering import default_list_item_text
from docx_converter.exceptions import InvalidArgumentError
from docx_converter.models import (
    LIST_LANG_UNSUPPORTED,
    MISSING_IMAGE,
    MISSING_NOTE,
    MISSING_NUMBERING_PART,
    MISSING_RELATIONSHIP,
    UNACCEPTED_REVISION,
    UNSUPPORTED_ELEMENT,
    UNSUPPORTED_NUMBERING_FORMAT,
    UNSUPPORTED_RUN_CHILD,
)

from ..helpers import RT, drawing, paragraph, png_bytes, wrap_part

STYLES = wrap_part(
    "w:styles",
    """
    <w:docDefaults>
        <w:rPrDefault><w:rPr><w:rFonts w:ascii="Calibri"/><w:sz w:val="22"/></w:rPr></w:rPrDefault>
    </w:docDefaults>
    <w:style w:type="paragraph" w:default="1" w:styleId="Normal"><w:name w:val="Normal"/></w:style>
    <w:style w:type="paragraph" w:styleId="Quote">
        <w:name w:val="Quote"/><w:basedOn w:val="Normal"/><w:pPr><w:jc w:val="center"/></w:pPr>
    </w:style>
    <w:style w:type="paragraph" w:styleId="Titre3"><w:name w:val="heading 3"/></w:style>
    <w:style w:type="character" w:styleId="Accent">
        <w:name w:val="Accent"/><w:rPr><w:color w:val="C00000"/></w:rPr>
    </w:style>
    """,
)

NUMBERING = """
<w:abstractNum w:abstractNumId="0">
    <w:lvl w:ilvl="0"><w:start w:val="1"/><w:numFmt w:val="decimal"/><w:lvlText w:val="%1."/></w:lvl>
    <w:lvl w:ilvl="1"><w:start w:val="1"/><w:numFmt w:val="bullet"/><w:lvlText w:val="-"/></w:lvl>
</w:abstractNum>
<w:abstractNum w:abstractNumId="1">
    <w:lvl w:ilvl="0"><w:start w:val="1"/><w:numFmt w:val="ganada"/><w:lvlText w:val="%1)"/></w:lvl>
</w:abstractNum>
<w:num w:numId="1">
    <w:abstractNumId w:val="0"/>
    <w:lvlOverride w:ilvl="0"><w:startOverride w:val="5"/></w:lvlOverride>
</w:num>
<w:num w:numId="2"><w:abstractNumId w:val="0"/></w:num>
<w:num w:numId="3"><w:abstractNumId w:val="1"/></w:num>
<w:num w:numId="4"><w:abstractNumId w:val="0"/></w:num>
"""


def render(data, **settings):
    """Convert and return ``(result, html root element)``."""
    result = convert_to_html(data, output_format="element", **settings)
    return result, result.html_element


def text_of(element):
    return "".join(element.itertext())


def list_paragraph(text, num_id, ilvl=0, rpr=""):
    return paragraph(text, ppr=f'<w:numPr><w:ilvl w:val="{ilvl}"/><w:numId w:val="{num_id}"/></w:numPr>', rpr=rpr)


def section_break(references=""):
    return f"<w:p><w:pPr><w:sectPr>{references}</w:sectPr></w:pPr></w:p>"


class TestDocumentStructure:
    """Test cases for the overall document shape."""

    def test_string_output(self, simple_docx):
        result = convert_to_html(simple_docx)
        assert result.html.startswith("<!DOCTYPE html>")
        assert "Test paragraph" in result.html
        assert result.html_element is None
        assert result.warnings == []

    def test_page_title_and_section(self, simple_docx):
        result, html = render(simple_docx, page_title="Report")
        assert html.findtext("head/title") == "Report"
        sections = html.xpath("//div[@class='pt-section']")
        assert len(sections) == 1
        assert text_of(sections[0].find("p")) == "Test paragraph"

    def test_invalid_output_format(self, simple_docx):
        with pytest.raises(InvalidArgumentError):
            convert_to_html(simple_docx, output_format="pdf")

    def test_unknown_option(self, simple_docx):
        with pytest.raises(InvalidArgumentError):
            convert_to_html(simple_docx, no_such_option=True)

    def test_two_sections_share_header(self, build_docx):
        header_ref = '<w:headerReference w:type="default" r:id="rIdHeader"/>'
        body = paragraph("One") + section_break(header_ref) + paragraph("Two") + "<w:sectPr/>"
        result, html = render(build_docx(body, headers={"rIdHeader": paragraph("Running head")}))
        sections = html.xpath("//div[@class='pt-section']")
        assert len(sections) == 2
        for section in sections:
            header = section.xpath("div[@class='pt-header']")
            assert len(header) == 1
            assert text_of(header[0]) == "Running head"

    def test_footer_rendered_after_content(self, build_docx):
        footer_ref = '<w:footerReference w:type="default" r:id="rIdFooter"/>'
        body = paragraph("Body") + f"<w:sectPr>{footer_ref}</w:sectPr>"
        result, html = render(build_docx(body, footers={"rIdFooter": paragraph("Page foot")}))
        section = html.xpath("//div[@class='pt-section']")[0]
        assert section[-1].get("class") == "pt-footer"

    def test_missing_header_relationship(self, build_docx):
        body = paragraph("Body") + '<w:sectPr><w:headerReference w:type="default" r:id="rIdNope"/></w:sectPr>'
        result, html = render(build_docx(body))
        assert MISSING_RELATIONSHIP in result.warning_codes()
        assert not html.xpath("//div[@class='pt-header']")

    def test_unsupported_block(self, build_docx):
        result, html = render(build_docx("<w:altChunk/>" + paragraph("After")))
        assert UNSUPPORTED_ELEMENT in result.warning_codes()
        assert text_of(html.find("body")) == "After"


class TestRuns:
    """Test cases for run formatting."""

    def test_bold_italic_nesting(self, build_docx):
        result, html = render(build_docx(paragraph("Both", rpr="<w:b/><w:i/>")))
        em = html.xpath("//p/span/strong/em")
        assert len(em) == 1
        assert em[0].text == "Both"

    def test_all_wrappers_in_order(self, build_docx):
        rpr = '<w:vertAlign w:val="superscript"/><w:strike/><w:b/><w:i/><w:u w:val="single"/>'
        result, html = render(build_docx(paragraph("x", rpr=rpr)))
        assert html.xpath("//p/span/sup/s/strong/em/u")[0].text == "x"

    def test_subscript(self, build_docx):
        result, html = render(build_docx(paragraph("2", rpr='<w:vertAlign w:val="subscript"/>')))
        assert html.xpath("//span/sub")[0].text == "2"

    def test_run_css(self, build_docx):
        rpr = '<w:color w:val="FF0000"/><w:sz w:val="28"/><w:rFonts w:ascii="Times New Roman"/><w:highlight w:val="yellow"/>'
        result, html = render(build_docx(paragraph("Styled", rpr=rpr)))
        style = html.xpath("//p/span")[0].get("style")
        assert "color:#FF0000" in style
        assert "font-size:14pt" in style
        assert "font-family:'Times New Roman'" in style
        assert "background-color:#FFFF00" in style

    def test_hidden_run_skipped(self, build_docx):
        body = '<w:p><w:r><w:t>Seen</w:t></w:r><w:r><w:rPr><w:vanish/></w:rPr><w:t>Hidden</w:t></w:r></w:p>'
        result, html = render(build_docx(body))
        assert text_of(html.find("body")) == "Seen"

    def test_tabs_and_breaks(self, build_docx):
        body = "<w:p><w:r><w:t>A</w:t><w:tab/><w:t>B</w:t><w:br/><w:t>C</w:t></w:r></w:p>"
        result, html = render(build_docx(body))
        span = html.xpath("//p/span")[0]
        assert span.text == "A\tB"
        assert span[0].tag == "br"
        assert span[0].tail == "C"

    def test_page_break(self, build_docx):
        body = paragraph("Before") + '<w:p><w:r><w:br w:type="page"/></w:r></w:p>' + paragraph("After")
        result, html = render(build_docx(body))
        assert len(html.xpath("//br[@class='pt-page-break']")) == 1
        assert ".pt-page-break{page-break-before:always}" in result.css_text

    def test_symbol(self, build_docx):
        body = '<w:p><w:r><w:sym w:font="Symbol" w:char="F041"/></w:r></w:p>'
        result, html = render(build_docx(body))
        assert text_of(html.find("body")) == "A"

    def test_unsupported_run_child_warns_once_and_keeps_siblings(self, build_docx):
        body = "<w:p><w:r><w:t>A</w:t><w:contentPart/><w:t>B</w:t></w:r></w:p>"
        result, html = render(build_docx(body))
        assert result.warning_codes().count(UNSUPPORTED_RUN_CHILD) == 1
        assert html.xpath("//p/span")[0].text == "AB"
        assert result.warnings[0].part == "/word/document.xml"

    def test_rtl(self, build_docx):
        result, html = render(build_docx(paragraph("RTL", ppr="<w:bidi/>", rpr="<w:rtl/>")))
        p = html.xpath("//p")[0]
        assert p.get("dir") == "rtl"
        assert p.find("span").get("dir") == "rtl"


class TestParagraphs:
    """Test cases for paragraph rendering."""

    @pytest.mark.parametrize(
        "ppr, tag",
        [
            ('<w:pStyle w:val="Heading1"/>', "h1"),
            ('<w:pStyle w:val="heading4"/>', "h4"),
            ('<w:pStyle w:val="Titre3"/>', "h3"),
            ('<w:outlineLvl w:val="1"/>', "h2"),
            ('<w:pStyle w:val="Quote"/>', "p"),
        ],
    )
    def test_headings(self, build_docx, ppr, tag):
        result, html = render(build_docx(paragraph("Title", ppr=ppr), styles=STYLES))
        assert html.xpath("//div[@class='pt-section']")[0][0].tag == tag

    def test_line_height_and_spacing(self, build_docx):
        ppr = '<w:spacing w:before="240" w:line="360" w:lineRule="auto"/><w:ind w:left="720"/>'
        result, html = render(build_docx(paragraph("Spaced", ppr=ppr)))
        style = html.xpath("//p")[0].get("style")
        assert "line-height:1.5" in style
        assert "margin-top:12pt" in style
        assert "margin-left:36pt" in style

    def test_borders_and_shading(self, build_docx):
        ppr = '<w:pBdr><w:bottom w:val="single" w:sz="8" w:color="FF0000"/></w:pBdr><w:shd w:fill="EEEEEE"/>'
        result, html = render(build_docx(paragraph("Boxed", ppr=ppr)))
        style = html.xpath("//p")[0].get("style")
        assert "border-bottom:1pt solid #FF0000" in style
        assert "background-color:#EEEEEE" in style

    def test_style_formatting_inlined(self, build_docx):
        result, html = render(build_docx(paragraph("Centered", ppr='<w:pStyle w:val="Quote"/>'), styles=STYLES))
        p = html.xpath("//p")[0]
        assert p.get("style") == "text-align:center"
        assert p.get("class") is None

    def test_fabricated_classes(self, build_docx):
        body = '<w:p><w:pPr><w:pStyle w:val="Quote"/></w:pPr><w:r><w:rPr><w:rStyle w:val="Accent"/></w:rPr><w:t>Q</w:t></w:r></w:p>'
        result, html = render(build_docx(body, styles=STYLES), fabricate_css_classes=True)
        p = html.xpath("//p")[0]
        assert p.get("class") == "pt-p-quote"
        assert p.get("style") is None
        assert p.find("span").get("class") == "pt-r-accent"
        assert ".pt-p-quote{text-align:center}" in result.css_text
        assert ".pt-r-accent{color:#C00000}" in result.css_text

    def test_class_prefix(self, build_docx):
        result, html = render(build_docx(paragraph("x")), css_class_prefix="doc-")
        assert html.xpath("//div[@class='doc-section']")

    def test_bookmark(self, build_docx):
        body = '<w:p><w:bookmarkStart w:id="0" w:name="intro"/><w:r><w:t>Intro</w:t></w:r><w:bookmarkEnd w:id="0"/></w:p>'
        result, html = render(build_docx(body))
        assert html.xpath("//p/a[@id='intro']")


class TestStylesheet:
    """Test cases for the generated stylesheet."""

    def test_document_defaults(self, build_docx):
        result, html = render(build_docx(paragraph("x"), styles=STYLES))
        assert "body{font-size:11pt;font-family:Calibri}" in result.css_text
        assert html.findtext("head/style") == result.css_text

    def test_general_and_additional_css(self, simple_docx):
        result = convert_to_html(simple_docx, general_css="p{margin:0}", additional_css="h1{color:red}")
        assert result.css_text.startswith("p{margin:0}")
        assert result.css_text.endswith("h1{color:red}")


class TestHyperlinks:
    """Test cases for hyperlinks."""

    def test_external_link(self, build_docx):
        body = '<w:p><w:hyperlink r:id="rIdLink"><w:r><w:t>site</w:t></w:r></w:hyperlink></w:p>'
        data = build_docx(body, relationships=[("rIdLink", f"{RT}/hyperlink", "https://example.com/", "External")])
        result, html = render(data)
        link = html.xpath("//p/a")[0]
        assert link.get("href") == "https://example.com/"
        assert text_of(link) == "site"

    def test_internal_anchor(self, build_docx):
        body = (
            '<w:p><w:bookmarkStart w:id="1" w:name="target"/></w:p>'
            '<w:p><w:hyperlink w:anchor="target"><w:r><w:t>jump</w:t></w:r></w:hyperlink></w:p>'
        )
        result, html = render(build_docx(body))
        assert html.xpath("//a[@href='#target']")
        assert html.xpath("//a[@id='target']")

    def test_missing_relationship(self, build_docx):
        body = '<w:p><w:hyperlink r:id="rIdGone"><w:r><w:t>dead</w:t></w:r></w:hyperlink></w:p>'
        result, html = render(build_docx(body))
        assert MISSING_RELATIONSHIP in result.warning_codes()
        link = html.xpath("//p/a")[0]
        assert link.get("href") is None
        assert text_of(link) == "dead"


class TestLists:
    """Test cases for numbered and bulleted lists."""

    def test_sibling_lists_keep_their_numbering(self, build_docx):
        body = "".join(list_paragraph(f"a{i}", "1") for i in range(3))
        body += "".join(list_paragraph(f"b{i}", "2") for i in range(3))
        result, html = render(
            build_docx(body, numbering=NUMBERING),
            list_item_implementations={"en-US": default_list_item_text},
        )
        lists = html.xpath("//div[@class='pt-section']/ol")
        assert len(lists) == 2
        assert lists[0].get("start") == "5"
        assert lists[1].get("start") is None
        markers = [li.get("data-pt-marker") for li in html.xpath("//ol/li")]
        assert markers == ["5.", "6.", "7.", "1.", "2.", "3."]

    def test_list_after_another_list_restarts(self, build_docx):
        body = (
            list_paragraph("a0", "2")
            + list_paragraph("a1", "2")
            + list_paragraph("b0", "4")
            + list_paragraph("c0", "2")
        )
        result, html = render(
            build_docx(body, numbering=NUMBERING),
            list_item_implementations={"en-US": default_list_item_text},
        )
        lists = html.xpath("//div[@class='pt-section']/ol")
        assert [[text_of(li) for li in ol] for ol in lists] == [["a0", "a1"], ["b0"], ["c0"]]
        assert [ol.get("start") for ol in lists] == [None, None, None]
        markers = [li.get("data-pt-marker") for li in html.xpath("//ol/li")]
        assert markers == ["1.", "2.", "1.", "1."]

    def test_list_item_keeps_paragraph_formatting(self, build_docx):
        ppr = (
            '<w:numPr><w:ilvl w:val="0"/><w:numId w:val="2"/></w:numPr>'
            '<w:ind w:left="720" w:hanging="360"/><w:bidi/><w:jc w:val="center"/>'
        )
        result, html = render(build_docx(paragraph("item", ppr=ppr), numbering=NUMBERING))
        li = html.xpath("//ol/li")[0]
        assert li.get("dir") == "rtl"
        assert "text-align:center" in li.get("style")
        assert "margin-left" not in li.get("style")
        assert "text-indent" not in li.get("style")

    def test_list_item_fabricated_class(self, build_docx):
        ppr = '<w:pStyle w:val="Quote"/><w:numPr><w:ilvl w:val="0"/><w:numId w:val="2"/></w:numPr>'
        result, html = render(
            build_docx(paragraph("quoted", ppr=ppr), styles=STYLES, numbering=NUMBERING),
            fabricate_css_classes=True,
        )
        assert html.xpath("//ol/li")[0].get("class") == "pt-p-quote"

    def test_markers_absent_without_implementations(self, build_docx):
        result, html = render(build_docx(list_paragraph("a", "2"), numbering=NUMBERING))
        assert html.xpath("//ol/li")[0].get("data-pt-marker") is None

    def test_nested_bullets(self, build_docx):
        body = list_paragraph("outer", "2") + list_paragraph("inner", "2", ilvl=1) + list_paragraph("next", "2")
        result, html = render(build_docx(body, numbering=NUMBERING))
        outer = html.xpath("//div[@class='pt-section']/ol")[0]
        assert len(outer) == 2
        assert outer[0].find("ul/li") is not None
        assert text_of(outer[1]) == "next"

    def test_interrupted_list_resumes(self, build_docx):
        body = list_paragraph("one", "2") + paragraph("break") + list_paragraph("two", "2")
        result, html = render(build_docx(body, numbering=NUMBERING))
        lists = html.xpath("//ol")
        assert len(lists) == 2
        assert lists[1].get("start") == "2"

    def test_missing_numbering_part(self, build_docx):
        result, html = render(build_docx(list_paragraph("a", "1") + list_paragraph("b", "1")))
        assert result.warning_codes().count(MISSING_NUMBERING_PART) == 1
        assert len(html.xpath("//ol/li")) == 2

    def test_unsupported_format(self, build_docx):
        result, html = render(
            build_docx(list_paragraph("a", "3"), numbering=NUMBERING),
            restrict_to_supported_numbering_formats=True,
        )
        assert UNSUPPORTED_NUMBERING_FORMAT in result.warning_codes()
        assert html.xpath("//ol/li")

    def test_unsupported_language(self, build_docx):
        result, html = render(
            build_docx(list_paragraph("un", "2", rpr='<w:lang w:val="fr-FR"/>'), numbering=NUMBERING),
            restrict_to_supported_languages=True,
        )
        assert LIST_LANG_UNSUPPORTED in result.warning_codes()


class TestTables:
    """Test cases for table rendering."""

    def _cell(self, text, tcpr=""):
        return f"<w:tc><w:tcPr>{tcpr}</w:tcPr>{paragraph(text)}</w:tc>"

    def test_rowspan(self, build_docx):
        restart = self._cell("A", '<w:vMerge w:val="restart"/>')
        cont = self._cell("", "<w:vMerge/>")
        body = f"<w:tbl><w:tr>{restart}{self._cell('B')}</w:tr><w:tr>{cont}{self._cell('C')}</w:tr></w:tbl>"
        result, html = render(build_docx(body))
        rows = html.xpath("//table/tr")
        assert rows[0][0].get("rowspan") == "2"
        assert len(rows[1]) == 1
        assert text_of(rows[1][0]) == "C"

    def test_colspan_and_header(self, build_docx):
        span = self._cell("H", '<w:gridSpan w:val="2"/>')
        header = f"<w:tr><w:trPr><w:tblHeader/></w:trPr>{span}</w:tr>"
        body = f"<w:tbl>{header}<w:tr>{self._cell('x')}{self._cell('y')}</w:tr></w:tbl>"
        result, html = render(build_docx(body))
        th = html.xpath("//table/thead/tr/th")
        assert th[0].get("colspan") == "2"
        assert len(html.xpath("//table/tbody/tr/td")) == 2

    def test_borders(self, build_docx):
        borders = '<w:tblPr><w:tblBorders><w:top w:val="single"/><w:insideH w:val="single" w:sz="8"/></w:tblBorders></w:tblPr>'
        shaded = self._cell("a", '<w:shd w:fill="FFFF00"/>')
        body = f"<w:tbl>{borders}<w:tr>{shaded}</w:tr></w:tbl>"
        result, html = render(build_docx(body))
        table = html.xpath("//table")[0]
        assert table.get("style").startswith("border-collapse:collapse")
        cell_style = table.xpath(".//td")[0].get("style")
        assert "border-top:1pt solid #000000" in cell_style
        assert "background-color:#FFFF00" in cell_style

    def test_nested_table(self, build_docx):
        inner = f"<w:tbl><w:tr>{self._cell('inner')}</w:tr></w:tbl>"
        body = f"<w:tbl><w:tr><w:tc>{inner}<w:p/></w:tc></w:tr></w:tbl>"
        result, html = render(build_docx(body))
        assert html.xpath("//table//td/table//td")


class TestNotes:
    """Test cases for footnotes, endnotes and comments."""

    FOOTNOTES = (
        '<w:footnote w:type="separator" w:id="-1"><w:p/></w:footnote>'
        '<w:footnote w:id="1"><w:p><w:r><w:footnoteRef/></w:r><w:r><w:t>Note text</w:t></w:r></w:p></w:footnote>'
    )

    def test_footnote(self, build_docx):
        body = '<w:p><w:r><w:t>Claim</w:t></w:r><w:r><w:rPr><w:vertAlign w:val="superscript"/></w:rPr><w:footnoteReference w:id="1"/></w:r></w:p>'
        result, html = render(build_docx(body, footnotes=self.FOOTNOTES))
        link = html.xpath("//p//sup/a")[0]
        assert link.get("href") == "#pt-footnote-1"
        assert link.text == "1"
        assert not html.xpath("//p/span/sup/sup")
        notes = html.xpath("//ol[@class='pt-footnotes']/li")
        assert len(notes) == 1
        assert notes[0].get("id") == "pt-footnote-1"
        assert text_of(notes[0]) == "Note text"

    def test_missing_note(self, build_docx):
        body = '<w:p><w:r><w:footnoteReference w:id="9"/></w:r></w:p>'
        result, html = render(build_docx(body, footnotes=self.FOOTNOTES))
        assert MISSING_NOTE in result.warning_codes()
        assert html.xpath("//sup")[0].text == "[9]"
        assert not html.xpath("//ol[@class='pt-footnotes']")

    def test_endnote(self, build_docx):
        body = '<w:p><w:r><w:endnoteReference w:id="2"/></w:r></w:p>'
        endnotes = '<w:endnote w:id="2"><w:p><w:r><w:t>End</w:t></w:r></w:p></w:endnote>'
        result, html = render(build_docx(body, endnotes=endnotes))
        assert html.xpath("//a[@href='#pt-endnote-2']")
        assert html.xpath("//ol[@class='pt-endnotes']/li[@id='pt-endnote-2']")

    def test_comments(self, build_docx):
        body = '<w:p><w:r><w:t>Text</w:t></w:r><w:r><w:commentReference w:id="1"/></w:r></w:p>'
        comments = '<w:comment w:id="1" w:author="Ann"><w:p><w:r><w:t>Remark</w:t></w:r></w:p></w:comment>'
        data = build_docx(body, comments=comments)

        result, html = render(data)
        assert not html.xpath("//sup")

        result, html = render(data, include_comments=True)
        item = html.xpath("//ol[@class='pt-comments']/li")[0]
        assert item.get("data-author") == "Ann"
        assert text_of(item) == "Remark"


class TestImages:
    """Test cases for images."""

    def _image_docx(self, build_docx, include_part=True):
        parts = {"word/media/image1.png": png_bytes()} if include_part else {}
        return build_docx(
            f"<w:p>{drawing('rIdImg')}</w:p>",
            relationships=[("rIdImg", f"{RT}/image", "media/image1.png", None)],
            parts=parts,
        )

    def test_data_uri(self, build_docx):
        result, html = render(self._image_docx(build_docx))
        img = html.xpath("//img")[0]
        assert img.get("src").startswith("data:image/png;base64,")
        assert img.get("alt") == "Logo"
        assert img.get("width") == "100"
        assert img.get("height") == "50"

    def test_image_handler(self, build_docx):
        seen = []

        def handler(info):
            seen.append(info)
            return {"src": "images/logo.png", "class": "figure"}

        result, html = render(self._image_docx(build_docx), image_handler=handler)
        img = html.xpath("//img")[0]
        assert img.get("src") == "images/logo.png"
        assert img.get("class") == "figure"
        assert seen[0].content_type == "image/png"
        assert seen[0].part_name == "/word/media/image1.png"
        assert seen[0].alt_text == "Logo"

    def test_handler_returning_none_uses_data_uri(self, build_docx):
        result, html = render(self._image_docx(build_docx), image_handler=lambda info: None)
        assert html.xpath("//img")[0].get("src").startswith("data:")

    def test_missing_image_part(self, build_docx):
        result, html = render(self._image_docx(build_docx, include_part=False))
        assert MISSING_IMAGE in result.warning_codes()
        assert not html.xpath("//img")


class TestRevisions:
    """Test cases for tracked revisions during rendering."""

    BODY = (
        '<w:p><w:r><w:t>Keep </w:t></w:r><w:ins w:id="1" w:author="A"><w:r><w:t>added</w:t></w:r></w:ins>'
        '<w:del w:id="2" w:author="A"><w:r><w:delText>gone</w:delText></w:r></w:del></w:p>'
    )

    def test_revisions_accepted_by_default(self, build_docx):
        result, html = render(build_docx(self.BODY))
        assert text_of(html.xpath("//p")[0]) == "Keep added"
        assert UNACCEPTED_REVISION not in result.warning_codes()

    def test_unaccepted_revisions_skipped(self, build_docx):
        result, html = render(build_docx(self.BODY), preprocess={"accept_revisions": False})
        assert text_of(html.xpath("//p")[0]) == "Keep "
        assert result.warning_codes().count(UNACCEPTED_REVISION) == 1
