import base64
import binascii
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, UploadFile
from pydantic import BaseModel

from loanlens.api.deps import get_analyzer, get_extractor
from loanlens.errors import ExtractionError
from loanlens.models.analysis import DocumentAnalysis
from loanlens.models.extraction import ExtractedFacts
from loanlens.services.analysis_service import DocumentAnalyzer
from loanlens.services.extraction import DocumentRef, Extractor

logger = logging.getLogger(__name__)

router = APIRouter(tags=["documents"])


class DocumentRequest(BaseModel):
    """A document as base64 bytes or as a URL the extractor can fetch."""
    file_base64: Optional[str] = None
    document_url: Optional[str] = None


class AnalyzeRequest(DocumentRequest):
    address: Optional[str] = None
    notify: bool = False


class AnalyzeResponse(BaseModel):
    success: bool
    analysis: DocumentAnalysis


class ProcessResponse(BaseModel):
    success: bool
    extracted: ExtractedFacts


def _document_ref(request: DocumentRequest) -> DocumentRef:
    if request.file_base64:
        try:
            return base64.b64decode(request.file_base64, validate=True)
        except (binascii.Error, ValueError):
            raise HTTPException(status_code=400, detail="file_base64 is not valid base64")
    if request.document_url:
        return request.document_url
    raise HTTPException(status_code=400, detail="file_base64 or document_url required")


def _run_analysis(
    analyzer: DocumentAnalyzer, document: DocumentRef, address: Optional[str], notify: bool
) -> AnalyzeResponse:
    try:
        analysis = analyzer.analyze(document, address_override=address, notify=notify)
    except ExtractionError as e:
        logger.error("Error analyzing document: %s", e)
        raise HTTPException(status_code=500, detail="Analysis failed")
    return AnalyzeResponse(success=True, analysis=analysis)


@router.post("/documents/analyze", response_model=AnalyzeResponse)
def analyze_document(request: AnalyzeRequest, analyzer: DocumentAnalyzer = Depends(get_analyzer)):
    """Analyze a mortgage document and return metrics, eligibility and guidance.

    With ``notify`` set, approved and conditional borrowers are emailed.
    """
    document = _document_ref(request)
    return _run_analysis(analyzer, document, request.address, request.notify)


@router.post("/documents/upload", response_model=AnalyzeResponse)
def upload_document(
    file: UploadFile,
    address: Optional[str] = None,
    notify: bool = False,
    analyzer: DocumentAnalyzer = Depends(get_analyzer),
):
    """Upload a PDF and analyze it."""
    if not file.filename:
        raise HTTPException(status_code=400, detail="No filename provided")
    ext = file.filename.rsplit(".", 1)[-1].lower() if "." in file.filename else ""
    if ext != "pdf":
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type '.{ext}'. Please upload a .pdf",
        )

    data = file.file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    return _run_analysis(analyzer, data, address, notify)


@router.post("/documents/process", response_model=ProcessResponse)
def process_document(request: DocumentRequest, extractor: Extractor = Depends(get_extractor)):
    """Extract fields only, without valuation or underwriting."""
    document = _document_ref(request)
    try:
        extracted = extractor.extract(document)
    except ExtractionError as e:
        logger.error("Error processing document: %s", e)
        raise HTTPException(status_code=500, detail="Processing failed")
    return ProcessResponse(success=True, extracted=extracted)
