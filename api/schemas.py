# standardize request / response payloads for the health log endpoints

from typing import Optional, Union

from pydantic import BaseModel, Field


# A daily note handed over by the caller; modified is any value that changes when the text changes
class DocumentIn(BaseModel):
    id: str = Field(min_length=1)
    label: str = Field(min_length=1)
    text: str
    modified: Optional[Union[int, float, str]] = None


class FoodOut(BaseModel):
    name: str
    time: Optional[str] = None


class SupplementOut(BaseModel):
    name: str
    dose: Optional[str] = None
    time: Optional[str] = None


class ExerciseOut(BaseModel):
    activity: str
    duration: Optional[str] = None
    time: Optional[str] = None


class SymptomOut(BaseModel):
    description: str
    severity: Optional[str] = None
    onset: Optional[str] = None
    time: Optional[str] = None


# Shape of /health_log/parse input: raw note text, or an already isolated section when heading is null
class ParseLogIn(BaseModel):
    text: str
    heading: Optional[str] = "Health log"
    document_id: str = "inline"
    date: str = ""


class ParsedEntryOut(BaseModel):
    document_id: str
    date: str
    foods: list[FoodOut] = Field(default_factory=list)
    supplements: list[SupplementOut] = Field(default_factory=list)
    exercise: list[ExerciseOut] = Field(default_factory=list)
    symptoms: list[SymptomOut] = Field(default_factory=list)


class ParseLogOut(BaseModel):
    status: str
    section_found: bool
    entry: ParsedEntryOut


class AnalyzeIn(BaseModel):
    documents: list[DocumentIn]
    heading: str = "Health log"
    extractor: Optional[str] = Field(default=None, pattern="^(heuristic|llm)$")


class TriggerOut(BaseModel):
    type: str
    name: str


class OccurrenceOut(BaseModel):
    date: str
    trigger_time: Optional[str] = None
    symptom_time: Optional[str] = None
    time_lag: Optional[str] = None


class AssociationOut(BaseModel):
    trigger: TriggerOut
    symptom: str
    occurrences: list[OccurrenceOut]
    total_count: int
    percentage: float
    trigger_count: int
    occurrence_rate: float


class AnalysisSummaryOut(BaseModel):
    entries: int
    unique_foods: int
    unique_supplements: int
    unique_exercise: int
    unique_symptoms: int


class AnalyzeOut(BaseModel):
    entries: list[ParsedEntryOut]
    associations: list[AssociationOut]
    cancelled: bool
    summary: AnalysisSummaryOut
