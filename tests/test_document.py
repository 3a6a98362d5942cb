"""Tests for the markdown document tree builder."""

from inkwell_pkg.document import (
    CodeBlock, Document, Emphasis, Heading, Image, InlineCode, Link, List,
    ListItem, Paragraph, Quote, RawHtml, Rule, Strong, Text,
    parse_document, parse_language,
)


def only_child(document):
    assert len(document.children) == 1
    return document.children[0]


class TestBlocks:
    """Block-level constructs."""

    def test_root_is_document(self):
        assert isinstance(parse_document(''), Document)
        assert parse_document('').children == ()

    def test_heading_gets_anchor(self):
        heading = only_child(parse_document("## Monadic Comprehension Syntax\n"))

        assert heading == Heading(
            level=2,
            children=(Text('Monadic Comprehension Syntax'),),
            id='monadic-comprehension-syntax',
        )

    def test_rich_heading_gets_no_anchor(self):
        """Only headings that start with plain text are given an id."""
        heading = only_child(parse_document("# *Rich* heading\n"))

        assert isinstance(heading.children[0], Emphasis)
        assert heading.id is None

    def test_heading_starting_with_link_gets_no_anchor(self):
        heading = only_child(parse_document("### [Linked](https://example.com) heading\n"))
        assert heading.id is None

    def test_punctuation_only_heading_gets_no_anchor(self):
        heading = only_child(parse_document("# !!!\n"))
        assert heading.id is None

    def test_duplicate_headings_share_anchor(self):
        document = parse_document("## Setup\n\n## Setup\n")
        assert [node.id for node in document.children] == ['setup', 'setup']

    def test_paragraphs_split_on_blank_lines(self):
        document = parse_document("First paragraph.\n\nSecond paragraph.\n")
        assert document.children == (
            Paragraph((Text('First paragraph.'),)),
            Paragraph((Text('Second paragraph.'),)),
        )

    def test_soft_break_becomes_space(self):
        paragraph = only_child(parse_document("line one\nline two\n"))
        assert paragraph == Paragraph((Text('line one line two'),))

    def test_fenced_code_is_verbatim(self):
        code = only_child(parse_document("```js\nconst x = 1;\n```\n"))

        assert code == CodeBlock(source="const x = 1;\n", language='js')

    def test_no_inline_parsing_inside_fence(self):
        code = only_child(parse_document("```\n*not emphasis* [not](link)\n```\n"))

        assert code.language is None
        assert code.source == "*not emphasis* [not](link)\n"

    def test_language_prefix_is_stripped(self):
        code = only_child(parse_document("```language-python\nprint(1)\n```\n"))
        assert code.language == 'python'

    def test_unterminated_fence_does_not_raise(self):
        document = parse_document("```python\nprint(1)\n")
        code = only_child(document)
        assert isinstance(code, CodeBlock)
        assert 'print(1)' in code.source

    def test_unordered_list(self):
        listing = only_child(parse_document("- one\n- two\n"))

        assert listing == List(
            ordered=False,
            start_index=1,
            items=(ListItem((Text('one'),)), ListItem((Text('two'),))),
        )

    def test_ordered_list_start(self):
        listing = only_child(parse_document("3. three\n4. four\n"))

        assert listing.ordered
        assert listing.start_index == 3
        assert len(listing.items) == 2

    def test_loose_list_items_hold_paragraphs(self):
        listing = only_child(parse_document("- one\n\n- two\n"))
        assert listing.items[0].children == (Paragraph((Text('one'),)),)

    def test_block_quote(self):
        quote = only_child(parse_document("> quoted *text*\n"))
        assert quote == Quote((Paragraph((Text('quoted '), Emphasis((Text('text'),)))),))

    def test_thematic_break(self):
        document = parse_document("above\n\n---\n\nbelow\n")
        assert isinstance(document.children[1], Rule)

    def test_raw_html_block(self):
        node = only_child(parse_document("<div class=\"note\">hi</div>\n"))
        assert isinstance(node, RawHtml)
        assert 'class="note"' in node.html


class TestInlines:
    """Inline constructs within a block."""

    def test_emphasis_and_strong(self):
        paragraph = only_child(parse_document("a *b* **c**\n"))
        assert paragraph.children == (
            Text('a '), Emphasis((Text('b'),)), Text(' '), Strong((Text('c'),)),
        )

    def test_link(self):
        paragraph = only_child(parse_document('[docs](https://example.com "Docs")\n'))
        assert paragraph.children == (Link(href='https://example.com', children=(Text('docs'),), title='Docs'),)

    def test_relative_image(self):
        paragraph = only_child(parse_document("![A chart](chart.png)\n"))
        assert paragraph.children == (Image(src='chart.png', alt='A chart'),)

    def test_inline_code(self):
        paragraph = only_child(parse_document("use `*args` here\n"))
        assert paragraph.children[1] == InlineCode((Text('*args'),))

    def test_unclosed_emphasis_is_text(self):
        paragraph = only_child(parse_document("a *dangling marker\n"))
        assert paragraph.children == (Text('a *dangling marker'),)

    def test_malformed_link_is_text(self):
        paragraph = only_child(parse_document("see [this](\n"))
        assert all(isinstance(child, Text) for child in paragraph.children)
        assert 'see [this]' in paragraph.children[0].value


class TestParseLanguage:
    def test_first_word_of_info(self):
        assert parse_language('python title="x.py"') == 'python'

    def test_empty(self):
        assert parse_language('') is None
        assert parse_language(None) is None
        assert parse_language('   ') is None


def test_parse_is_idempotent():
    body = "# Title\n\nText with *emphasis*, `code` and a [link](a.md).\n\n```js\nx\n```\n"
    assert parse_document(body) == parse_document(body)


class TestEntities:
    """Entity references decode in text but stay literal in code spans."""

    def test_entities_in_paragraph_text(self):
        paragraph = only_child(parse_document("AT&amp;T &mdash; done\n"))
        assert paragraph.children == (Text('AT&T — done'),)

    def test_entity_in_heading_anchor(self):
        heading = only_child(parse_document("# Tom &amp; Jerry\n"))

        assert heading.children == (Text('Tom & Jerry'),)
        assert heading.id == 'tom-jerry'

    def test_code_span_keeps_entity_text(self):
        paragraph = only_child(parse_document("`a &amp; b`\n"))
        assert paragraph.children == (InlineCode((Text('a &amp; b'),)),)

    def test_image_alt_decodes_entities(self):
        paragraph = only_child(parse_document("![Q&amp;A](qa.png)\n"))
        assert paragraph.children == (Image(src='qa.png', alt='Q&A'),)
