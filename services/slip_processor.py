import logging
from dataclasses import dataclass, field
from typing import List, Optional

from match_results import MatchResultService
from models.bet import BettingSlipAnalysis
from models.match import EnrichedSelection
from ocr import OcrPool
from parsing import SlipParser

logger = logging.getLogger("slip_processor")


@dataclass
class SlipReport:
    analysis: BettingSlipAnalysis
    selections: List[EnrichedSelection] = field(default_factory=list)
    ocr_text: str = ""


class SlipProcessor:
    """Image -> OCR text -> slip analysis -> resolved selections."""

    def __init__(self, parser: SlipParser, results: MatchResultService, ocr_pool: Optional[OcrPool] = None):
        self.parser = parser
        self.results = results
        self.ocr_pool = ocr_pool

    async def process_image(self, image_bytes: bytes) -> SlipReport:
        if self.ocr_pool is None:
            raise RuntimeError("No OCR pool configured")
        text = await self.ocr_pool.recognize(image_bytes)
        return await self.process_text(text)

    async def process_text(self, text: str) -> SlipReport:
        analysis = self.parser.analyze(text)
        if not analysis.is_betting_slip or not analysis.selections:
            return SlipReport(analysis=analysis, ocr_text=text)
        enriched = await self.results.fetch_match_results(analysis.selections, match_date=analysis.match_date)
        logger.info(f"Resolved {len(enriched)} selections for slip {analysis.bet_ref or '(no ref)'}")
        return SlipReport(analysis=analysis, selections=enriched, ocr_text=text)
