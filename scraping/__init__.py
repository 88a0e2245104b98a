"""Data ingestion package for Mega-Sena results."""

from .provider import megasena_provider, MegaSenaDataProvider, DataProviderError
from .data_cleaner import DataCleaner, clean_megasena_data, parse_money_br

__all__ = [
    'megasena_provider',
    'MegaSenaDataProvider',
    'DataProviderError',
    'DataCleaner',
    'clean_megasena_data',
    'parse_money_br',
]
