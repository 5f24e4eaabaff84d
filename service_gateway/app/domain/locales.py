"""
Language and region mapping for the Custom Search API.
"""

from typing import Dict, Optional

# User-facing names to Custom Search ``lr`` values
LANGUAGE_CODES: Dict[str, str] = {
    "English": "lang_en",
    "Portuguese": "lang_pt",
    "Spanish": "lang_es",
    "French": "lang_fr",
    "German": "lang_de",
}

# User-facing names to Custom Search ``cr`` values
REGION_CODES: Dict[str, str] = {
    "United States": "countryUS",
    "United Kingdom": "countryGB",
    "Portugal": "countryPT",
    "Spain": "countryES",
    "Brazil": "countryBR",
    "Germany": "countryDE",
    "France": "countryFR",
}


def resolve_search_params(language_id: Optional[str], region_id: Optional[str]) -> Dict[str, str]:
    """Map optional language/region names to ``lr``/``cr``. Unknown names are dropped."""
    params: Dict[str, str] = {}
    if language_id:
        lr = LANGUAGE_CODES.get(language_id)
        if lr:
            params["lr"] = lr
    if region_id:
        cr = REGION_CODES.get(region_id)
        if cr:
            params["cr"] = cr
    return params
