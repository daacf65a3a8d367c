"""docchat: document ingestion and grounded chat over uploaded PDFs and DOCX files."""

__version__ = "0.1.0"
