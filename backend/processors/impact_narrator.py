#!/usr/bin/env python3
"""
💬 IMPACT NARRATOR
==================
Turns an AQI reading into a few short, relatable impact examples
("Basically smoked: 2 cigarettes").

The rest of the pipeline only relies on
``generate_impact_examples(aqi, location) -> List[str]``; backends and prompt
wording are interchangeable:
- GeminiImpactNarrator: generative, prompt chosen from PROMPTS
- RuleBasedImpactNarrator: deterministic, offline
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Dict, List, Optional

from processors.aqi_calculator import get_aqi_category
from utils.errors import NarrationFailed, NarrationTimeout

logger = logging.getLogger(__name__)


class ImpactNarrator:
    """Interface for impact narration backends"""

    name = 'base'

    def generate_impact_examples(self, aqi: int, location: str) -> List[str]:
        raise NotImplementedError


@dataclass(frozen=True)
class NarrationPrompt:
    """Prompt strategy for generative narration"""
    name: str
    template: str

    def render(self, aqi: int, location: str) -> str:
        return self.template.format(aqi=aqi, location=location)


WITTY_PROMPT = NarrationPrompt('witty', """
You are a witty and relatable environmental assistant. Translate the Air Quality Index (AQI)
into easy-to-understand comparisons that make the impact crystal clear.

Location: {location}
AQI (India NAQI scale): {aqi}

Generate 3 short, punchy and relatable examples of this AQI's impact:
1. "Cigarettes smoked (24hrs): X cigarettes" based on research correlating PM2.5 with cigarette equivalents
2. "Reduced life expectancy: X hours/days per year" based on WHO air pollution health impact data
3. "Equivalent to: [relatable scenario]" such as standing behind a running car for X minutes

Use realistic numbers. For low AQI (0-50) use minimal impacts, for very high AQI (300+) show severe impacts.

Return ONLY valid JSON, no markdown:
{{"examples": ["example 1", "example 2", "example 3"]}}
""")

HEALTH_PROMPT = NarrationPrompt('health', """
You are a public health communicator in India. Explain what today's air means for ordinary people.

Location: {location}
AQI (India NAQI scale): {aqi}

Write 3 very short, plain-language impact statements (under 12 words each) covering:
breathing outdoors, who is most at risk, and one practical precaution.

Return ONLY valid JSON, no markdown:
{{"examples": ["statement 1", "statement 2", "statement 3"]}}
""")

PROMPTS: Dict[str, NarrationPrompt] = {prompt.name: prompt for prompt in (WITTY_PROMPT, HEALTH_PROMPT)}


def parse_examples(text: str) -> List[str]:
    """Extract the examples list from a model response (tolerates ``` fences)"""
    text = (text or '').strip()
    if text.startswith("```"):
        text = text.split("```")[1]
        if text.startswith("json"):
            text = text[4:]
        text = text.strip()

    try:
        payload = json.loads(text)
    except (TypeError, ValueError) as e:
        raise NarrationFailed(f"Narration response was not valid JSON: {e}")

    examples = payload.get('examples') if isinstance(payload, dict) else payload
    if not isinstance(examples, list):
        raise NarrationFailed("Narration response has no examples list")

    examples = [str(example).strip() for example in examples if str(example).strip()]
    if not examples:
        raise NarrationFailed("Narration response contained no examples")
    return examples


class GeminiImpactNarrator(ImpactNarrator):
    """
    Generative narration through Google Gemini

    The call runs on a worker thread so a stuck request is abandoned after
    ``timeout_seconds`` and reported as NarrationTimeout.
    """

    name = 'gemini'

    def __init__(self, api_key: Optional[str], model: str = 'gemini-2.5-flash',
                 prompt: NarrationPrompt = WITTY_PROMPT, timeout_seconds: float = 10.0,
                 client=None):
        self.model = model
        self.prompt = prompt
        self.timeout_seconds = timeout_seconds
        self._client = client
        self._api_key = api_key
        self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix='narrator')

    @property
    def client(self):
        """Lazy load the Gemini client"""
        if self._client is None:
            if not self._api_key:
                raise NarrationFailed("GEMINI_API_KEY is not configured")
            from google import genai
            from google.genai import types
            self._client = genai.Client(
                api_key=self._api_key,
                http_options=types.HttpOptions(timeout=int(self.timeout_seconds * 1000)),
            )
        return self._client

    def _generate(self, prompt_text: str) -> str:
        response = self.client.models.generate_content(model=self.model, contents=prompt_text)
        return response.text

    def generate_impact_examples(self, aqi: int, location: str) -> List[str]:
        prompt_text = self.prompt.render(aqi, location)
        future = self._executor.submit(self._generate, prompt_text)
        try:
            text = future.result(timeout=self.timeout_seconds)
        except FutureTimeout:
            future.cancel()
            logger.error(f"❌ Gemini narration timed out after {self.timeout_seconds}s")
            raise NarrationTimeout()
        except NarrationFailed:
            raise
        except Exception as e:
            logger.error(f"❌ Gemini narration failed: {e}")
            raise NarrationFailed(f"Impact narration failed: {e}")

        examples = parse_examples(text)
        logger.info(f"✅ Generated {len(examples)} impact examples for AQI {aqi} ({self.prompt.name} prompt)")
        return examples


# CPCB PM2.5 (24h, ug/m3) breakpoints aligned with NAQI AQI bands
PM25_BREAKPOINTS = [
    (0, 50, 0.0, 30.0),
    (51, 100, 31.0, 60.0),
    (101, 200, 61.0, 90.0),
    (201, 300, 91.0, 120.0),
    (301, 400, 121.0, 250.0),
    (401, 500, 251.0, 380.0),
]

# Berkeley Earth: 22 ug/m3 of PM2.5 for a day ~ one cigarette
PM25_PER_CIGARETTE = 22.0
# AQLI: 0.98 years of life expectancy per 10 ug/m3 above the WHO guideline
WHO_PM25_GUIDELINE = 5.0
YEARS_LOST_PER_UG = 0.098

SCENARIOS = {
    'Good': 'Equivalent to: a walk in a clean park',
    'Satisfactory': 'Equivalent to: a quiet residential street',
    'Moderate': 'Equivalent to: an hour beside a busy highway',
    'Poor': 'Equivalent to: burning 5 incense sticks in a closed room',
    'Very Poor': 'Equivalent to: standing behind a running diesel truck for 30 minutes',
    'Severe': 'Equivalent to: sitting next to a bonfire all day',
}


def aqi_to_pm25(aqi: int) -> float:
    """Invert the NAQI PM2.5 sub-index (linear within each band)"""
    aqi = max(0, aqi)
    for i_lo, i_hi, c_lo, c_hi in PM25_BREAKPOINTS:
        if aqi <= i_hi:
            return c_lo + (aqi - i_lo) * (c_hi - c_lo) / (i_hi - i_lo)
    i_lo, i_hi, c_lo, c_hi = PM25_BREAKPOINTS[-1]
    return c_lo + (aqi - i_lo) * (c_hi - c_lo) / (i_hi - i_lo)


class RuleBasedImpactNarrator(ImpactNarrator):
    """Deterministic narration, assuming PM2.5 drives the AQI"""

    name = 'rules'

    def generate_impact_examples(self, aqi: int, location: str) -> List[str]:
        pm25 = aqi_to_pm25(aqi)
        cigarettes = pm25 / PM25_PER_CIGARETTE
        years_lost = max(0.0, pm25 - WHO_PM25_GUIDELINE) * YEARS_LOST_PER_UG

        if cigarettes < 0.5:
            smoked = "Cigarettes smoked (24hrs): less than half a cigarette"
        else:
            smoked = f"Cigarettes smoked (24hrs): {cigarettes:.1f} cigarettes"

        if years_lost < 0.1:
            lost = "Reduced life expectancy: negligible"
        else:
            lost = f"Reduced life expectancy: ~{years_lost:.1f} years with lifelong exposure"

        scenario = SCENARIOS[get_aqi_category(aqi).level]
        return [smoked, lost, scenario]


def build_impact_narrator(backend: str, api_key: Optional[str] = None, model: str = 'gemini-2.5-flash',
                          prompt_name: str = 'witty', timeout_seconds: float = 10.0) -> ImpactNarrator:
    """Select a narration backend by name ('gemini' or 'rules')"""
    if backend == 'rules':
        return RuleBasedImpactNarrator()
    if backend == 'gemini':
        prompt = PROMPTS.get(prompt_name)
        if prompt is None:
            raise ValueError(f"Unknown narration prompt '{prompt_name}' (choose from {sorted(PROMPTS)})")
        return GeminiImpactNarrator(api_key, model=model, prompt=prompt, timeout_seconds=timeout_seconds)
    raise ValueError(f"Unknown narrator backend '{backend}'")
