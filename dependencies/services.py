
from fastapi import Depends

from config import Settings, get_settings
from services.clients import get_groq, get_supabase, get_tavily
from services.prediction_generator import PredictionGenerator
from services.prediction_service import PredictionService
from services.profile_store import ProfileStore
from services.search_service import SearchService


def get_profile_store() -> ProfileStore:
    return ProfileStore(get_supabase())


def get_search_service(settings: Settings = Depends(get_settings)) -> SearchService:
    return SearchService(get_tavily(), max_results=settings.search_max_results)


def get_prediction_generator(settings: Settings = Depends(get_settings)) -> PredictionGenerator:
    return PredictionGenerator(get_groq(), model=settings.groq_model)


def get_prediction_service(
    store: ProfileStore = Depends(get_profile_store),
    search: SearchService = Depends(get_search_service),
    generator: PredictionGenerator = Depends(get_prediction_generator),
) -> PredictionService:
    return PredictionService(store, search, generator)
