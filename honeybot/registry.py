"""Asset registry — static, immutable, loaded once at import.

Maps the semantic asset identifiers used by both classifiers (e.g. ``Bitcoin``,
``Shipbuilding``) to the symbol a market-data source understands, plus the
Korean/English title patterns the keyword classifier matches on.

Add a new asset or sector HERE; the pattern classifier, the LLM prompt's
identifier list, and the market resolver all read from this table.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Literal, Mapping

AssetClass = Literal["crypto", "stock", "index"]


@dataclass(frozen=True)
class AssetDefinition:
    """Registry entry: where and how an asset trades."""

    key: str
    symbol: str  # exchange pair for crypto, yfinance ticker otherwise
    name: str
    market: str  # XKRX | NYSE | NASDAQ | CRYPTO
    asset_class: AssetClass
    timezone: str
    patterns: tuple[re.Pattern[str], ...] = field(default=(), repr=False)

    def match(self, title: str) -> str | None:
        """Return the first matching span of *title*, or None."""
        for pattern in self.patterns:
            m = pattern.search(title)
            if m:
                return m.group(0)
        return None


_KRX_TZ = "Asia/Seoul"
_US_TZ = "America/New_York"


def _p(*patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


def _kr(key: str, symbol: str, name: str, *patterns: str) -> AssetDefinition:
    return AssetDefinition(key, symbol, name, "XKRX", "stock", _KRX_TZ, _p(*patterns))


def _us(key: str, symbol: str, name: str, *patterns: str) -> AssetDefinition:
    return AssetDefinition(key, symbol, name, "NASDAQ", "stock", _US_TZ, _p(*patterns))


_DEFINITIONS: tuple[AssetDefinition, ...] = (
    # ── Crypto (Binance spot pairs) ──
    AssetDefinition(
        "Bitcoin", "BTCUSDT", "비트코인", "CRYPTO", "crypto", "UTC",
        _p(r"비트코인", r"btc", r"코인", r"암호화폐", r"가상화폐", r"크립토"),
    ),
    AssetDefinition(
        "Ethereum", "ETHUSDT", "이더리움", "CRYPTO", "crypto", "UTC",
        _p(r"이더리움", r"eth", r"이더"),
    ),
    # ── Indices ──
    AssetDefinition(
        "KOSPI", "^KS11", "코스피", "XKRX", "index", _KRX_TZ,
        _p(r"코스피", r"kospi", r"한국\s*(주식|증시)", r"국장"),
    ),
    AssetDefinition(
        "KOSDAQ", "^KQ11", "코스닥", "XKRX", "index", _KRX_TZ,
        _p(r"코스닥", r"kosdaq"),
    ),
    AssetDefinition(
        "NASDAQ", "^IXIC", "나스닥", "NASDAQ", "index", _US_TZ,
        _p(r"나스닥", r"nasdaq", r"미국\s*(주식|증시)", r"미장"),
    ),
    AssetDefinition(
        "SP500", "^GSPC", "S&P500", "NYSE", "index", _US_TZ,
        _p(r"s&p\s*500", r"에스앤피", r"sp500"),
    ),
    # ── US stocks ──
    _us("Nvidia", "NVDA", "엔비디아", r"엔비디아", r"nvidia", r"nvda"),
    _us("Tesla", "TSLA", "테슬라", r"테슬라", r"tesla", r"tsla"),
    _us("Google", "GOOGL", "구글", r"구글", r"알파벳", r"google"),
    _us("Apple", "AAPL", "애플", r"애플", r"apple", r"aapl"),
    _us("Microsoft", "MSFT", "마이크로소프트", r"마이크로소프트", r"microsoft", r"msft"),
    _us("Amazon", "AMZN", "아마존", r"아마존", r"amazon", r"amzn"),
    _us("Meta", "META", "메타", r"메타\s*플랫폼", r"페이스북"),
    # ── Korean stocks ──
    _kr("Samsung", "005930.KS", "삼성전자", r"삼성전자", r"삼전"),
    _kr("SKHynix", "000660.KS", "SK하이닉스", r"하이닉스", r"하닉"),
    _kr("Hyundai", "005380.KS", "현대차", r"현대차", r"현대자동차"),
    _kr("LGEnergy", "373220.KS", "LG에너지솔루션", r"lg에너지", r"엘지에너지", r"lg엔솔"),
    _kr("SamsungBio", "207940.KS", "삼성바이오로직스", r"삼성바이오", r"삼바"),
    _kr("Celltrion", "068270.KS", "셀트리온", r"셀트리온"),
    # ── Korean sectors → representative ticker ──
    _kr("Shipbuilding", "009540.KS", "조선주 (HD한국조선해양)", r"조선주", r"조선업"),
    _kr("Defense", "012450.KS", "방산주 (한화에어로스페이스)", r"방산"),
    _kr("Battery", "373220.KS", "2차전지주 (LG에너지솔루션)", r"2차\s*전지", r"이차전지"),
    _kr("Auto", "005380.KS", "자동차주 (현대차)", r"자동차주"),
    _kr("Bio", "207940.KS", "바이오주 (삼성바이오로직스)", r"바이오주"),
    _kr("Bank", "105560.KS", "은행주 (KB금융)", r"은행주", r"금융주"),
    _kr("Construction", "000720.KS", "건설주 (현대건설)", r"건설주"),
    _kr("Steel", "005490.KS", "철강주 (POSCO홀딩스)", r"철강"),
    _kr("Chemical", "051910.KS", "화학주 (LG화학)", r"화학주"),
    _kr("Energy", "096770.KS", "에너지주 (SK이노베이션)", r"정유주", r"에너지주"),
    _kr("Retail", "004170.KS", "유통주 (신세계)", r"유통주"),
    _kr("Telecom", "017670.KS", "통신주 (SK텔레콤)", r"통신주"),
    _kr("Nuclear", "034020.KS", "원전주 (두산에너빌리티)", r"원전"),
    _kr("Semiconductor", "005930.KS", "반도체주 (삼성전자)", r"반도체"),
    _kr("Internet", "035720.KS", "인터넷주 (카카오)", r"인터넷주", r"플랫폼주"),
    _kr("Game", "036570.KS", "게임주 (엔씨소프트)", r"게임주"),
    _kr("Entertainment", "352820.KS", "엔터주 (하이브)", r"엔터주"),
)

ASSET_REGISTRY: Mapping[str, AssetDefinition] = MappingProxyType(
    {d.key: d for d in _DEFINITIONS}
)
"""Read-only mapping of asset key → definition."""

# Lowercased aliases so model output like "bitcoin" or "S&P500" still resolves
_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        **{k.lower(): k for k in ASSET_REGISTRY},
        "btc": "Bitcoin",
        "eth": "Ethereum",
        "s&p500": "SP500",
        "s&p 500": "SP500",
        "sk hynix": "SKHynix",
    }
)


def lookup_asset(
    identifier: str,
    registry: Mapping[str, AssetDefinition] = ASSET_REGISTRY,
) -> AssetDefinition | None:
    """Find a registry entry by key (case-insensitive, with a few aliases)."""
    if not identifier:
        return None
    ident = identifier.strip()
    if ident in registry:
        return registry[ident]
    canonical = _ALIASES.get(ident.lower())
    if canonical is None:
        return None
    return registry.get(canonical)


# ── Tone lexicons (disjoint) ────────────────────────────────────────

BULLISH_PATTERNS: tuple[re.Pattern[str], ...] = _p(
    r"상승", r"오른다", r"올라", r"급등", r"폭등", r"사야", r"매수",
    r"기회", r"저점", r"반등", r"회복", r"돌파", r"신고가", r"호재",
)

BEARISH_PATTERNS: tuple[re.Pattern[str], ...] = _p(
    r"하락", r"떨어", r"내려", r"급락", r"폭락", r"팔아", r"매도",
    r"위험", r"고점", r"조정", r"붕괴", r"위기", r"곤두박질", r"악재",
    r"버블", r"끝", r"빠진다", r"조심", r"무너", r"반토막", r"침체",
)
