from ellift.services.pdf_extractors.base import DocumentLoader, LoadedDocument
from ellift.services.pdf_extractors.pymupdf_extractor import PyMuPDFLoader

__all__ = ["DocumentLoader", "LoadedDocument", "PyMuPDFLoader"]
