"""Data cleaning and validation for Mega-Sena feeds."""

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import logging

from models.draw_models import Contest, Draw, HistoricalDataset, PrizeTier
from utils.helpers import coerce_int

logger = logging.getLogger(__name__)

TIER_NAMES = ('Sena', 'Quina', 'Quadra')
DEFAULT_TIER = 'Faixa'

WINNER_KEYS = ('vencedores', 'quantidade', 'qtd', 'ganhadores')
PRIZE_KEYS = ('premio', 'valorPremio', 'valor', 'rateio')
TIER_KEYS = ('acertos', 'faixa', 'descricao')

# Loose "qtGanhadoresSena"/"vlRateioQuina" style keys
LOOSE_TIER_PATTERNS = [
    (
        tier,
        re.compile(rf"(qt|qtd|ganhadores?).*{tier}|{tier}.*(qt|qtd|ganhadores?)", re.I),
        re.compile(rf"(vl|valor|rateio).*{tier}|{tier}.*(vl|valor|rateio)", re.I),
    )
    for tier in TIER_NAMES
]


@dataclass
class ValidationResult:
    """Result of data validation."""
    is_valid: bool
    errors: List[str]
    warnings: List[str] = field(default_factory=list)
    cleaned_data: Optional[Any] = None


def parse_money_br(value) -> Optional[float]:
    """Parse a Brazilian money value ("R$ 1.234.567,89") into a float."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    text = re.sub(r"[^\d,.-]", "", str(value))
    text = text.replace(".", "").replace(",", ".")
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def normalize_tier_name(text) -> str:
    """Map feed tier descriptions ("6 acertos - SENA") to Sena/Quina/Quadra."""
    upper = str(text or "").upper()
    for tier in TIER_NAMES:
        if tier.upper() in upper:
            return tier
    return str(text) if text else DEFAULT_TIER


def _first_present(obj: Dict, keys: Tuple[str, ...]):
    for key in keys:
        if obj.get(key) is not None:
            return obj[key]
    return None


def _to_count(value) -> Optional[int]:
    if value is None:
        return None
    number = coerce_int(value)
    if number is None:
        try:
            as_float = float(value)
        except (TypeError, ValueError):
            return None
        number = int(as_float) if math.isfinite(as_float) else None
    return number


def _merge_tiers(tiers: List[PrizeTier]) -> List[PrizeTier]:
    """One entry per tier: first known winner count, highest known prize."""
    merged: Dict[str, PrizeTier] = {}
    for tier in tiers:
        previous = merged.get(tier.tier)
        if previous is None:
            merged[tier.tier] = tier
            continue
        winners = previous.winners if previous.winners is not None else tier.winners
        if previous.prize is None:
            prize = tier.prize
        elif tier.prize is None:
            prize = previous.prize
        else:
            prize = max(previous.prize, tier.prize)
        merged[tier.tier] = PrizeTier(tier=tier.tier, winners=winners, prize=prize)
    return list(merged.values())


def extract_prize_breakdown(obj) -> List[PrizeTier]:
    """Prize breakdown from a contest object.

    Reads the ``premiacoes`` array when present and also scans loose keys
    such as ``qtGanhadoresSena``; entries for the same tier are merged.
    """
    if not isinstance(obj, dict):
        return []

    tiers: List[PrizeTier] = []
    for item in obj.get('premiacoes') or []:
        if not isinstance(item, dict):
            continue
        tiers.append(PrizeTier(
            tier=normalize_tier_name(_first_present(item, TIER_KEYS)),
            winners=_to_count(_first_present(item, WINNER_KEYS)),
            prize=parse_money_br(_first_present(item, PRIZE_KEYS)),
        ))

    for tier, winners_re, prize_re in LOOSE_TIER_PATTERNS:
        winners_key = next((k for k in obj if winners_re.search(k)), None)
        prize_key = next((k for k in obj if prize_re.search(k)), None)
        winners = _to_count(obj[winners_key]) if winners_key else None
        prize = parse_money_br(obj[prize_key]) if prize_key else None
        if winners is not None or prize is not None:
            tiers.append(PrizeTier(tier=tier, winners=winners, prize=prize))

    return _merge_tiers(tiers)


def extract_prize_from_analytic(analytic, contest: Optional[int]) -> List[PrizeTier]:
    """Prize breakdown for ``contest`` from the analytic file.

    Falls back to the most recent analytic entry that carries ``premiacoes``.
    """
    if not isinstance(analytic, dict):
        return []
    draws = analytic.get('draws') or []
    hit = None
    if contest is not None:
        hit = next((d for d in draws if isinstance(d, dict) and coerce_int(d.get('concurso')) == contest), None)
    if hit is None:
        hit = next(
            (d for d in reversed(draws) if isinstance(d, dict) and isinstance(d.get('premiacoes'), list)),
            None,
        )
    if hit is None:
        return []
    return extract_prize_breakdown(hit)


def extract_dates(analytic) -> Dict[int, str]:
    """Contest -> date lookup from the analytic file."""
    dates = {}
    if not isinstance(analytic, dict):
        return dates
    for entry in analytic.get('draws') or []:
        if not isinstance(entry, dict):
            continue
        contest = coerce_int(entry.get('concurso'))
        if contest is not None and entry.get('data'):
            dates[contest] = str(entry['data'])
    return dates


class DataCleaner:
    """Clean and validate Mega-Sena contests."""

    def validate_contest(self, contest: int, values) -> ValidationResult:
        """Validate the numbers of a single contest."""
        errors = []
        warnings = []

        if values is None or isinstance(values, (str, dict)) or not hasattr(values, '__iter__'):
            return ValidationResult(is_valid=False, errors=[f"Contest {contest}: numbers missing"])

        numbers = [coerce_int(v) for v in values]
        if any(n is None for n in numbers):
            errors.append(f"Contest {contest}: non-numeric value in {list(values)}")

        draw = Draw.from_raw(values)
        if draw is None and not errors:
            errors.append(f"Contest {contest}: not 6 distinct numbers in range: {list(values)}")

        if draw is not None:
            sorted_nums = list(draw.numbers)
            if all(sorted_nums[i + 1] == sorted_nums[i] + 1 for i in range(len(sorted_nums) - 1)):
                warnings.append(f"Contest {contest}: sequential numbers {sorted_nums}")

        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            cleaned_data=draw,
        )

    def build_dataset(self, raw: Dict, analytic=None) -> Tuple[HistoricalDataset, Dict[str, Any]]:
        """Turn the raw ``{contest: numbers}`` mapping into a dataset and a quality report."""
        dates = extract_dates(analytic)
        contests = {}
        validations = {}

        for key, values in (raw or {}).items():
            contest_id = coerce_int(key)
            if contest_id is None or contest_id <= 0:
                logger.warning(f"Skipping contest with invalid id: {key!r}")
                continue
            validation = self.validate_contest(contest_id, values)
            validations[contest_id] = validation
            raw_numbers = tuple(values) if isinstance(values, (list, tuple)) else ()
            contests[contest_id] = Contest(
                contest=contest_id,
                raw_numbers=raw_numbers,
                date=dates.get(contest_id),
            )
            if not validation.is_valid:
                logger.warning(f"Invalid contest excluded from analysis: {validation.errors}")

        dataset = HistoricalDataset(contests=contests, dates=dates)
        report = self.generate_quality_report(validations)
        logger.info(
            f"Dataset built: {report['valid_results']}/{report['total_results']} valid contests "
            f"({report['success_rate']:.2%})"
        )
        return dataset, report

    def generate_quality_report(self, validations: Dict[int, ValidationResult]) -> Dict[str, Any]:
        """Generate data quality report."""
        total = len(validations)
        valid = sum(1 for v in validations.values() if v.is_valid)
        return {
            'total_results': total,
            'valid_results': valid,
            'invalid_contests': sorted(c for c, v in validations.items() if not v.is_valid),
            'warnings': sum(len(v.warnings) for v in validations.values()),
            'success_rate': valid / total if total else 0.0,
        }


def clean_megasena_data(raw: Dict, analytic=None) -> Tuple[HistoricalDataset, Dict[str, Any]]:
    """Convenience function to build a dataset from raw feeds."""
    return DataCleaner().build_dataset(raw, analytic)
