"""Pydantic request/response models for the resume-review API."""

from typing import Literal

from pydantic import BaseModel, Field


class IngestResponse(BaseModel):
    """Result of running the ingestion pipeline on an upload."""
    filename: str
    text: str
    text_length: int
    preview_url: str = Field(default="", description="Revocable preview reference; DELETE it when done")
    preview_name: str = ""
    preview_size: int = 0
    preview_error: str | None = None
    processing_time_ms: int


class FeedbackTip(BaseModel):
    type: Literal["good", "improve"] = "improve"
    tip: str
    explanation: str = ""


class FeedbackCategory(BaseModel):
    score: int = Field(default=0, ge=0, le=100)
    tips: list[FeedbackTip] = []


class ResumeFeedback(BaseModel):
    """Structured LLM review of a resume against a job description."""
    overall_score: int = Field(default=0, ge=0, le=100)
    ats: FeedbackCategory = Field(default_factory=FeedbackCategory)
    tone_and_style: FeedbackCategory = Field(default_factory=FeedbackCategory)
    content: FeedbackCategory = Field(default_factory=FeedbackCategory)
    structure: FeedbackCategory = Field(default_factory=FeedbackCategory)
    skills: FeedbackCategory = Field(default_factory=FeedbackCategory)
    summary: str = ""
    strengths: list[str] = []
    weaknesses: list[str] = []
    improvements: list[str] = []
    keywords_found: list[str] = []
    keywords_missing: list[str] = []


class AnalyzeResponse(BaseModel):
    """Full response to the UI for one upload + job description."""
    resume_path: str
    image_path: str | None = Field(default=None, description="None when the preview could not be rendered")
    preview_error: str | None = None
    company_name: str = ""
    job_title: str = ""
    text_length: int
    feedback: ResumeFeedback
    processing_time_ms: int
