"""
Prediction pipeline for one request: quota check, coin spend, search
context, completion, parse.

Steps run one after another. A coin spent before a later step fails is not
refunded.
"""

from __future__ import annotations

import logging

from middleware.error_handler import QuotaExceeded, UpstreamFailure
from prediction_parser import parse_prediction
from schemas import PredictionResult
from services.prediction_generator import PredictionGenerator
from services.profile_store import ProfileStore
from services.search_service import SearchService

logger = logging.getLogger(__name__)


class PredictionService:
    def __init__(
        self,
        store: ProfileStore,
        search: SearchService,
        generator: PredictionGenerator,
    ) -> None:
        self.store = store
        self.search = search
        self.generator = generator

    def predict(self, user_id: str, team_a: str, team_b: str) -> PredictionResult:
        profile = self.store.get_profile(user_id)
        if profile is None:
            raise UpstreamFailure("Could not fetch your user profile.")
        if profile.coins_remaining <= 0:
            raise QuotaExceeded()

        if self.store.consume_coin(user_id, current=profile) is None:
            # A concurrent request spent the last coin after our read.
            raise QuotaExceeded()

        context = self.search.fetch_match_context(team_a, team_b)
        completion = self.generator.generate(team_a, team_b, context)
        result = parse_prediction(completion)

        logger.info(
            "Prediction generated",
            extra={"user_id": user_id, "team_a": team_a, "team_b": team_b},
        )
        return result
