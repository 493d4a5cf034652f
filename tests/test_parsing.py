import sys
import unittest
from io import BytesIO
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from docx import Document  # noqa: E402

from neujobscan.core.errors import ValidationError  # noqa: E402
from neujobscan.parsing.extract import extract_document_text, source_type_for  # noqa: E402

DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class DocumentExtractionTests(unittest.TestCase):
    def test_txt_returns_stable_parsed_doc(self):
        content = "Line one\n- Bullet item\nLine three"
        first = extract_document_text("resume.txt", content.encode("utf-8"), "text/plain")
        second = extract_document_text("resume.txt", content.encode("utf-8"), "text/plain")
        self.assertEqual(first.source_type, "txt")
        self.assertEqual(first.text, content)
        self.assertTrue(first.doc_id)
        self.assertEqual(first.doc_id, second.doc_id)
        self.assertEqual(first.parsing_warnings, [])

    def test_invalid_utf8_is_replaced_with_warning(self):
        parsed = extract_document_text("resume.txt", b"Jane \xff Doe", "text/plain")
        self.assertIn("Jane", parsed.text)
        self.assertEqual(len(parsed.parsing_warnings), 1)

    def test_docx_paragraphs_and_tables_are_extracted(self):
        document = Document()
        document.add_paragraph("Jane Doe")
        document.add_paragraph("Senior Software Engineer")
        table = document.add_table(rows=1, cols=2)
        table.rows[0].cells[0].text = "Python"
        table.rows[0].cells[1].text = "SQL"
        buffer = BytesIO()
        document.save(buffer)

        parsed = extract_document_text("resume.docx", buffer.getvalue(), DOCX_TYPE)
        self.assertEqual(parsed.source_type, "docx")
        self.assertIn("Jane Doe", parsed.text)
        self.assertIn("Python | SQL", parsed.text)
        self.assertGreaterEqual(len(parsed.blocks), 3)

    def test_corrupt_pdf_reports_warning_instead_of_raising(self):
        parsed = extract_document_text("resume.pdf", b"not really a pdf", "application/pdf")
        self.assertEqual(parsed.source_type, "pdf")
        self.assertEqual(parsed.text, "")
        self.assertTrue(parsed.parsing_warnings)

    def test_legacy_doc_recovers_printable_runs(self):
        content = b"\x00\x01Jane Doe\x00\x02\x03Python developer\x00"
        parsed = extract_document_text("resume.doc", content, "application/msword")
        self.assertEqual(parsed.source_type, "doc")
        self.assertIn("Jane Doe", parsed.text)
        self.assertIn("Python developer", parsed.text)

    def test_source_type_falls_back_to_extension_for_generic_uploads(self):
        self.assertEqual(source_type_for("cv.docx", "application/octet-stream"), "docx")
        self.assertEqual(source_type_for("cv.pdf", None), "pdf")

    def test_disallowed_content_type_is_rejected(self):
        with self.assertRaises(ValidationError):
            source_type_for("photo.png", "image/png")
        with self.assertRaises(ValidationError):
            source_type_for("archive.zip", "application/octet-stream")


if __name__ == "__main__":
    unittest.main()
