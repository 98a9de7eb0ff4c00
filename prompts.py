from textwrap import dedent

SEARCH_QUERY_TEMPLATE = (
    "Detailed stats, recent form, H2H, and injury news for the soccer match "
    "between {team_a} and {team_b}"
)

CONTEXT_SEPARATOR = "\n\n---\n\n"

PREDICTION_PROMPT_TEMPLATE = dedent(
    """\
    You are a data formatting machine. Your only job is to return a single, raw JSON object based on the data below.

    Data for the match between {team_a} and {team_b}:
    ---
    {context}
    ---

    Return a JSON object with exactly 8 keys. Each value is an object with the keys shown here:

    {{
      "fullTimeWinner": {{ "prediction": "string", "probability": "string (e.g. '55%')" }},
      "halfTimeWinner": {{ "prediction": "string", "probability": "string (e.g. '40%')" }},
      "overUnderGoals": {{ "prediction": "string (e.g. 'Over 2.5 Goals')", "probability": "string (e.g. '60%')" }},
      "correctScoreSuggestion": {{ "prediction": "string (e.g. '2-1')", "probability": "string (e.g. '15%')" }},
      "bothTeamsToScore": {{ "prediction": "string (Yes or No)", "probability": "string (e.g. '70%')" }},
      "doubleChance": {{ "prediction": "string (e.g. '{team_a} or Draw')", "probability": "string (e.g. '80%')" }},
      "handicapResult": {{ "prediction": "string (e.g. '{team_a} (-1)')", "reasoning": "string (briefly explain why)" }},
      "keyInsights": {{ "prediction": "string (e.g. 'A specific player to score')", "reasoning": "string (briefly explain the main insight)" }}
    }}

    Do not include any other text, explanations, or markdown formatting such as ```json. Only the raw JSON object."""
)


def build_search_query(team_a: str, team_b: str) -> str:
    return SEARCH_QUERY_TEMPLATE.format(team_a=team_a, team_b=team_b)


def build_prediction_prompt(team_a: str, team_b: str, context: str) -> str:
    return PREDICTION_PROMPT_TEMPLATE.format(team_a=team_a, team_b=team_b, context=context)
