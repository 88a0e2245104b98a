"""Historical Mega-Sena data provider backed by public JSON feeds."""

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional
import logging

from config.settings import settings
from models.draw_models import Draw, HistoricalDataset, LatestContest, NextContestInfo
from scraping.data_cleaner import (
    DataCleaner,
    extract_prize_breakdown,
    extract_prize_from_analytic,
    parse_money_br,
)
from utils.helpers import coerce_int

logger = logging.getLogger(__name__)


class DataProviderError(RuntimeError):
    """Raised when the mandatory history feed cannot be retrieved."""


class MegaSenaDataProvider:
    """Fetches the contest history, the analytic file and the latest results."""

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or self._build_session()
        self.cleaner = DataCleaner()
        self.urls = {
            'history': settings.data_url,
            'analytic': settings.analytic_url,
            'latest': f"{settings.alt_api_base}/megasena/latest",
            'contest': f"{settings.alt_api_base}/megasena/{{}}",
        }
        self.last_quality_report: Dict[str, Any] = {}

    @staticmethod
    def _build_session() -> requests.Session:
        session = requests.Session()
        retry = Retry(
            total=settings.scraping_retry_attempts,
            backoff_factor=settings.scraping_backoff_factor,
            status_forcelist=(500, 502, 503, 504),
            allowed_methods=("GET",),
        )
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        session.headers.update({
            'User-Agent': settings.scraping_user_agent,
            'Accept': 'application/json',
            'Cache-Control': 'no-store',
        })
        return session

    def _get_json(self, url: str) -> Any:
        response = self.session.get(url, timeout=settings.scraping_timeout)
        response.raise_for_status()
        return response.json()

    def _get_optional_json(self, url: str) -> Optional[Any]:
        """GET that logs and swallows failures of secondary sources."""
        try:
            return self._get_json(url)
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Optional source failed ({url}): {e}")
            return None

    def fetch_history(self) -> Dict[str, Any]:
        """Download the base history; raises DataProviderError on failure."""
        try:
            raw = self._get_json(self.urls['history'])
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Failed to download history: {e}")
            raise DataProviderError(f"Failed to download history: {e}") from e
        if not isinstance(raw, dict):
            raise DataProviderError("History feed is not a contest -> numbers mapping")
        return raw

    def fetch_contest(self, contest: int) -> Optional[Dict[str, Any]]:
        data = self._get_optional_json(self.urls['contest'].format(contest))
        return data if isinstance(data, dict) else None

    def fill_missing_contests(self, raw: Dict[str, Any], latest_contest: int) -> int:
        """Fetch contests newer than the history, in small parallel chunks.

        Only contests with exactly six numbers are added; returns how many.
        """
        existing = [c for c in (coerce_int(k) for k in raw) if c is not None]
        last_known = max(existing) if existing else 0
        missing = list(range(last_known + 1, latest_contest + 1))
        if not missing:
            return 0

        logger.info(f"Filling {len(missing)} contests after #{last_known}")
        chunk_size = max(1, settings.alt_fetch_chunk_size)
        added = 0
        with ThreadPoolExecutor(max_workers=chunk_size) as pool:
            for i in range(0, len(missing), chunk_size):
                chunk = missing[i:i + chunk_size]
                for data in pool.map(self.fetch_contest, chunk):
                    if not data:
                        continue
                    numbers = [n for n in (coerce_int(d) for d in data.get('dezenas') or []) if n is not None]
                    contest = coerce_int(data.get('concurso'))
                    if contest is not None and len(numbers) == 6:
                        raw[str(contest)] = numbers
                        added += 1
        return added

    @staticmethod
    def parse_next_contest(latest: Optional[Dict[str, Any]]) -> NextContestInfo:
        if not latest:
            return NextContestInfo()
        accumulated = latest.get('acumulado')
        return NextContestInfo(
            accumulated=bool(accumulated) if accumulated is not None else None,
            estimated_prize=parse_money_br(latest.get('valorEstimadoProximoConcurso')),
            next_date=latest.get('dataProximoConcurso'),
        )

    def resolve_latest(self, dataset: HistoricalDataset, latest: Optional[Dict],
                       contest_obj: Optional[Dict], analytic) -> LatestContest:
        """Last official contest, preferring the live API and falling back to the history."""
        contest = None
        date = None
        numbers: tuple = ()
        prizes: List = []

        base = contest_obj if contest_obj and contest_obj.get('dezenas') else latest
        if base:
            contest = coerce_int(base.get('concurso'))
            date = base.get('data')
            draw = Draw.from_raw(base.get('dezenas') or [])
            if draw is not None:
                numbers = draw.numbers
            elif contest is not None and dataset.draw_for(contest):
                numbers = dataset.draw_for(contest).numbers
            prizes = extract_prize_breakdown(base)
            if not prizes and contest is not None:
                prizes = extract_prize_from_analytic(analytic, contest)

        if contest is None:
            contest = dataset.last_contest
        if not date and contest is not None:
            date = dataset.date_for(contest)
        if not numbers and contest is not None and dataset.draw_for(contest):
            numbers = dataset.draw_for(contest).numbers
        if not prizes and contest is not None:
            prizes = extract_prize_from_analytic(analytic, contest)

        return LatestContest(contest=contest, date=date, numbers=tuple(numbers), prize_breakdown=tuple(prizes))

    def fetch_dataset(self) -> HistoricalDataset:
        """Retrieve every source and assemble the historical dataset."""
        logger.info("Fetching Mega-Sena history")
        raw = self.fetch_history()
        analytic = self._get_optional_json(self.urls['analytic'])

        latest = self._get_optional_json(self.urls['latest'])
        latest = latest if isinstance(latest, dict) else None
        contest_obj = None
        latest_n = coerce_int(latest.get('concurso')) if latest else None
        if latest_n:
            contest_obj = self.fetch_contest(latest_n)
            self.fill_missing_contests(raw, latest_n)

        dataset, report = self.cleaner.build_dataset(raw, analytic)
        self.last_quality_report = report

        resolved = self.resolve_latest(dataset, latest, contest_obj, analytic)
        if resolved.contest is not None and resolved.date and resolved.contest not in dataset.dates:
            dataset.dates[resolved.contest] = resolved.date
        dataset.latest = resolved
        dataset.next_contest = self.parse_next_contest(latest)
        return dataset


# Global provider instance
megasena_provider = MegaSenaDataProvider()
