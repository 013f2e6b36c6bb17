# tests/test_document.py

"""Tests for the BeautifulSoup-backed page document."""

import unittest

from pricewatch.extraction.document import SoupDocument

PAGE = """<html lang="de-DE"><head>
<title> Kaffeemühle </title>
<meta property="og:title" content="Kaffeemühle Deluxe">
<meta name="description" content="  ">
<script type="application/ld+json">{"@type": "Product", "name": "A"}</script>
<script type="application/ld+json">{not json</script>
</head><body>
<div id="main" class="product main">
  <h1 style="font-size: 1.5em">Kaffeemühle</h1>
  <span id="shown">49,99 €</span>
  <div style="display: none"><span id="hidden-child">39,99 €</span></div>
  <span id="attr-hidden" hidden>29,99 €</span>
  <input type="submit" value=" Kaufen ">
  <a role="button" href="/cart">In den Warenkorb</a>
</div>
</body></html>"""


class TestSoupDocument(unittest.TestCase):
    """Document-level queries."""

    def setUp(self) -> None:
        self.doc = SoupDocument(PAGE, "https://shop.example.de/p/1")

    def test_lang_and_title(self) -> None:
        """<html lang> and <title> are exposed stripped."""
        self.assertEqual(self.doc.lang, "de-DE")
        self.assertEqual(self.doc.title, "Kaffeemühle")

    def test_json_ld_skips_malformed(self) -> None:
        """Only decodable JSON-LD blocks are returned."""
        blocks = self.doc.json_ld_blocks()
        self.assertEqual(blocks, [{"@type": "Product", "name": "A"}])

    def test_meta_lookup(self) -> None:
        """Meta tags are found by property and blank content ignored."""
        self.assertEqual(self.doc.meta("og:title"), "Kaffeemühle Deluxe")
        self.assertIsNone(self.doc.meta("description"))
        self.assertIsNone(self.doc.meta("og:missing"))

    def test_purchase_controls(self) -> None:
        """Submit inputs and button-role links count as controls."""
        controls = self.doc.purchase_controls()
        self.assertEqual([c.tag for c in controls], ["input", "a"])
        self.assertEqual(controls[0].text, "Kaufen")

    def test_candidate_nodes_cover_spans(self) -> None:
        """Spans and divs are candidate containers."""
        tags = {n.tag for n in self.doc.candidate_nodes()}
        self.assertIn("span", tags)
        self.assertIn("div", tags)


class TestSoupNode(unittest.TestCase):
    """Node-level metadata."""

    def setUp(self) -> None:
        self.doc = SoupDocument(PAGE)

    def test_visibility(self) -> None:
        """Hidden ancestors and the hidden attribute hide a node."""
        shown = self.doc.select_one("#shown")
        hidden_child = self.doc.select_one("#hidden-child")
        attr_hidden = self.doc.select_one("#attr-hidden")
        assert shown and hidden_child and attr_hidden
        self.assertTrue(shown.is_visible)
        self.assertFalse(hidden_child.is_visible)
        self.assertFalse(attr_hidden.is_visible)

    def test_font_size_em(self) -> None:
        """Em sizes convert at 16px."""
        h1 = self.doc.select_one("h1")
        assert h1 is not None
        self.assertEqual(h1.font_size, 24.0)
        span = self.doc.select_one("#shown")
        assert span is not None
        self.assertIsNone(span.font_size)

    def test_classes_and_id(self) -> None:
        """class and id attributes are split and exposed."""
        main = self.doc.select_one("#main")
        assert main is not None
        self.assertEqual(main.classes, ["product", "main"])
        self.assertEqual(main.node_id, "main")

    def test_parent_and_ancestors(self) -> None:
        """Ancestors walk outward and stop at the document."""
        span = self.doc.select_one("#hidden-child")
        assert span is not None
        tags = [a.tag for a in span.ancestors()]
        self.assertEqual(tags, ["div", "div", "body", "html"])
        self.assertEqual(len(list(span.ancestors(2))), 2)

    def test_equality_by_element(self) -> None:
        """Two wrappers of the same element compare equal."""
        a = self.doc.select_one("#main")
        b = self.doc.select_one("h1")
        assert a is not None and b is not None
        self.assertEqual(b.parent, a)
        self.assertEqual(len({a, b.parent}), 1)


if __name__ == "__main__":
    unittest.main()
