"""Tests for uploaded legal document storage."""
import re

from bizvest.services.file_storage import FileStorage, safe_filename


class TestSafeFilename:
    def test_keeps_plain_name(self):
        assert safe_filename("nib.pdf") == "nib.pdf"

    def test_strips_directories(self):
        assert safe_filename("../../etc/passwd") == "passwd"
        assert safe_filename("C:\\Users\\owner\\npwp.pdf") == "npwp.pdf"

    def test_empty_name(self):
        assert safe_filename(None) == "document"
        assert safe_filename("") == "document"


class TestFileStorage:
    def test_business_legal_layout(self, tmp_path):
        stored = FileStorage(str(tmp_path)).save_business_legal(7, "nib.pdf", b"%PDF-1.4")

        assert re.fullmatch(r"7_\d+_nib\.pdf", stored.stored_name)
        assert stored.file_name == "nib.pdf"
        assert stored.file_url == f"/uploads/legal/business/{stored.stored_name}"
        path = tmp_path / "legal" / "business" / stored.stored_name
        assert path.read_bytes() == b"%PDF-1.4"

    def test_product_legal_layout(self, tmp_path):
        stored = FileStorage(str(tmp_path)).save_product_legal(7, 3, "halal.pdf", b"data")

        assert re.fullmatch(r"7_3_\d+_halal\.pdf", stored.stored_name)
        assert stored.file_url == f"/uploads/legal/products/{stored.stored_name}"
        assert (tmp_path / "legal" / "products" / stored.stored_name).exists()
