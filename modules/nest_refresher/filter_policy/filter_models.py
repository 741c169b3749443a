"""Filter Policy Result Models"""

from typing import List

from pydantic import Field

from ..models import NestAttributes


class FilterEvaluation(NestAttributes):
    """Attributes a nest should have after filtering, with the reasons why.

    ``explanations`` lists every decision in the order it was taken, ending with
    the classification reason.
    """

    explanations: List[str] = Field(default_factory=list, description="Decisions taken, in order")
