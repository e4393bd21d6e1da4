"""Company reference data models."""

from pydantic import BaseModel, Field


class Company(BaseModel):
    """A company that files financial reports."""

    model_config = {"frozen": True}

    id: str = Field(..., description="Unique identifier for the company")
    name: str = Field(..., description="Display name of the company")
    code: str = Field(..., description="Short ticker-like code (e.g., SRM)")


# Pre-defined companies
COMPANIES = {
    "1": Company(id="1", name="سروش مانا فارمد", code="SRM"),
    "2": Company(id="2", name="فاران فارمد", code="FRN"),
    "3": Company(id="3", name="سرمایه گذاری دارویی گلرنگ", code="GLG"),
    "4": Company(id="4", name="آرین سلامت سینا", code="ARN"),
    "5": Company(id="5", name="ابیان دارو", code="ABD"),
    "6": Company(id="6", name="تحقیقاتی و تولیدی واریان فارمد", code="VRY"),
    "7": Company(id="7", name="فاران شیمی تویسرکان", code="FRT"),
    "8": Company(id="8", name="ابیان فارمد", code="ABF"),
    "9": Company(id="9", name="فارمد سلامت سينا", code="FSH"),
    "10": Company(id="10", name="ابيان سلامت", code="ABS"),
    "11": Company(id="11", name="هستی آریا شیمی", code="HSA"),
    "12": Company(id="12", name="گسترش هستی سلامت شیمی", code="GHS"),
    "13": Company(id="13", name="هستی بهین فارمد", code="HBF"),
    "14": Company(id="14", name="پژوهش گستران تغذیه آسان", code="PGT"),
}
