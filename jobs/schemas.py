"""Structured-output schemas for single-shot jobs."""

from pydantic import BaseModel, Field, model_validator

MIN_CATEGORIES = 5
MAX_CATEGORIES = 7


class Allocation(BaseModel):
    category: str = Field(min_length=1, description="The name of the investment category.")
    percentage: float = Field(
        ge=0, le=100, description="The percentage of the portfolio allocated to this category."
    )


class AllocationPlan(BaseModel):
    allocations: list[Allocation]

    @model_validator(mode="after")
    def check_totals(self) -> "AllocationPlan":
        count = len(self.allocations)
        if not MIN_CATEGORIES <= count <= MAX_CATEGORIES:
            raise ValueError(
                f"Expected {MIN_CATEGORIES} to {MAX_CATEGORIES} allocation categories, got {count}"
            )
        total = round(sum(item.percentage for item in self.allocations), 6)
        if total != 100:
            raise ValueError(f"Allocation percentages must sum to 100, got {total:g}")
        return self

    @classmethod
    def response_schema(cls) -> dict:
        """Schema in the Gemini ``responseSchema`` dialect."""
        return {
            "type": "OBJECT",
            "properties": {
                "allocations": {
                    "type": "ARRAY",
                    "items": {
                        "type": "OBJECT",
                        "properties": {
                            "category": {
                                "type": "STRING",
                                "description": "The name of the investment category.",
                            },
                            "percentage": {
                                "type": "NUMBER",
                                "description": "The percentage of the portfolio allocated to this category.",
                            },
                        },
                        "required": ["category", "percentage"],
                    },
                }
            },
            "required": ["allocations"],
        }


class TraderProfile(BaseModel):
    name: str
    rank: str
    ytd: str
    trades: str
