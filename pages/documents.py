"""
Bilingual page documents: templates, normalizers and pure helpers.

Every stored document (``data_en`` / ``data_ar``) goes through ``normalize``
before it is used. Normalizers accept anything and never raise.
"""

import copy
import json
import math
import re
from datetime import datetime
from datetime import timezone as dt_timezone
from typing import Any
from typing import Callable
from typing import TypedDict


PAGE_KINDS = ("proposal", "progress", "meta")

WORK_PLAN_SEED_BLOCKS = 6
PRICING_SLOTS = 3
METRIC_KEYS = ("reach", "messages", "followers", "amountSpent", "timeDays")


class ClientInfo(TypedDict):
    name: str
    description: str


class ProposalHero(TypedDict):
    title: str
    subtitle: str
    introduction: str


class WorkPlanBullet(TypedDict):
    text: str
    highlightColor: str


class WorkPlanBlock(TypedDict):
    number: int
    heading: str
    leadText: str
    bullets: list[WorkPlanBullet]


class PricingPackage(TypedDict):
    name: str
    price: str
    points: list[str]


class ProposalData(TypedDict):
    hero: ProposalHero
    visionHtml: str
    goals: list[str]
    noticed: list[str]
    workPlan: list[WorkPlanBlock]
    pricing: list[PricingPackage]
    notesHtml: str


class ProgressPoint(TypedDict):
    text: str
    done: bool


class ProgressWorkPlan(TypedDict):
    brief: str
    points: list[ProgressPoint]


class CalendarItem(TypedDict):
    date: str
    time: str
    title: str
    points: list[str]


class PaymentEntry(TypedDict):
    amount: str
    description: str
    date: str


class ProgressPayments(TypedDict):
    agreedPrice: str
    entries: list[PaymentEntry]
    metaAdsBalance: str


class ProgressData(TypedDict):
    client: ClientInfo
    workPlan: ProgressWorkPlan
    calendar: list[CalendarItem]
    assetsUrl: str
    payments: ProgressPayments


class AdMetrics(TypedDict):
    reach: str
    messages: str
    followers: str
    amountSpent: str
    timeDays: str


class Ad(TypedDict):
    name: str
    metrics: AdMetrics


class AdSet(TypedDict):
    name: str
    ads: list[Ad]


class Campaign(TypedDict):
    name: str
    adSets: list[AdSet]


class MetaResults(TypedDict):
    reach: str
    messages: str
    campaigns: str
    followers: str
    amountSpent: str
    timeDays: str
    amountSpentUpdatedAt: str
    mediaUrl: str
    mediaLabel: str
    linkUrl: str
    linkLabel: str
    campaignItems: list[Campaign]


class MetaPlan(TypedDict):
    title: str
    points: list[str]


class MetaData(TypedDict):
    client: ClientInfo
    walletBalance: str
    walletUpdatedAt: str
    results: MetaResults
    plan: MetaPlan


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _obj(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [_str(item) for item in value]


def _load(value: Any, *, strict: bool = False) -> dict[str, Any] | None:
    if value is None:
        return None
    payload = value
    if isinstance(value, (str, bytes)):
        if not value:
            return None
        try:
            payload = json.loads(value)
        except RecursionError:
            if strict:
                raise ValueError("document is nested too deeply")
            return None
        except ValueError:
            if strict:
                raise
            return None
    return payload if isinstance(payload, dict) else None


def _client(value: Any) -> ClientInfo:
    client = _obj(value)
    return {
        "name": _str(client.get("name")),
        "description": _str(client.get("description")),
    }


def _iso(moment: datetime) -> str:
    if moment.tzinfo is not None:
        moment = moment.astimezone(dt_timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


# Proposal


def _empty_block(number: int) -> WorkPlanBlock:
    return {
        "number": number,
        "heading": "",
        "leadText": "",
        "bullets": [{"text": "", "highlightColor": ""}],
    }


def _empty_package() -> PricingPackage:
    return {"name": "", "price": "", "points": [""]}


def empty_proposal() -> ProposalData:
    return {
        "hero": {"title": "", "subtitle": "", "introduction": ""},
        "visionHtml": "",
        "goals": [""],
        "noticed": [""],
        "workPlan": [_empty_block(n) for n in range(1, WORK_PLAN_SEED_BLOCKS + 1)],
        "pricing": [_empty_package() for _ in range(PRICING_SLOTS)],
        "notesHtml": "",
    }


def _bullets(value: Any) -> list[WorkPlanBullet]:
    if not isinstance(value, list):
        return []
    bullets: list[WorkPlanBullet] = []
    for item in value:
        bullet = _obj(item)
        bullets.append(
            {
                "text": _str(bullet.get("text")),
                "highlightColor": _str(bullet.get("highlightColor")),
            }
        )
    return bullets


def _work_plan_blocks(value: Any) -> list[WorkPlanBlock]:
    if not isinstance(value, list):
        return []
    blocks: list[WorkPlanBlock] = []
    # Stored numbers are ignored; position is the number.
    for number, item in enumerate(value, start=1):
        block = _obj(item)
        blocks.append(
            {
                "number": number,
                "heading": _str(block.get("heading")),
                "leadText": _str(block.get("leadText")),
                "bullets": _bullets(block.get("bullets")),
            }
        )
    return blocks


def _pricing(value: Any) -> list[PricingPackage]:
    incoming = value if isinstance(value, list) else []
    packages: list[PricingPackage] = []
    for index in range(PRICING_SLOTS):
        item = _obj(incoming[index]) if index < len(incoming) else {}
        packages.append(
            {
                "name": _str(item.get("name")),
                "price": _str(item.get("price")),
                "points": _str_list(item["points"]) if "points" in item else [""],
            }
        )
    return packages


def _proposal_from(data: dict[str, Any]) -> ProposalData:
    base = empty_proposal()
    hero = _obj(data.get("hero"))
    return {
        "hero": {
            "title": _str(hero.get("title")),
            "subtitle": _str(hero.get("subtitle")),
            "introduction": _str(hero.get("introduction")),
        },
        "visionHtml": _str(data.get("visionHtml")),
        "goals": _str_list(data["goals"]) if "goals" in data else base["goals"],
        # Added after the first documents were stored; absent means "none yet".
        "noticed": _str_list(data.get("noticed")),
        "workPlan": (
            _work_plan_blocks(data["workPlan"]) if "workPlan" in data else base["workPlan"]
        ),
        "pricing": _pricing(data.get("pricing")),
        "notesHtml": _str(data.get("notesHtml")),
    }


def normalize_proposal(value: Any) -> ProposalData:
    data = _load(value)
    if data is None:
        return empty_proposal()
    return _proposal_from(data)


def is_proposal_available(doc: Any) -> bool:
    hero = _obj(_obj(doc).get("hero"))
    return bool(_str(hero.get("title")).strip())


def renumber_work_plan(doc: ProposalData) -> ProposalData:
    result = copy.deepcopy(doc)
    for number, block in enumerate(result["workPlan"], start=1):
        block["number"] = number
    return result


def remove_work_plan_block(doc: ProposalData, index: int) -> ProposalData:
    result = copy.deepcopy(doc)
    blocks = result["workPlan"]
    if 0 <= index < len(blocks):
        del blocks[index]
    return renumber_work_plan(result)


def move_work_plan_block(doc: ProposalData, source: int, target: int) -> ProposalData:
    result = copy.deepcopy(doc)
    blocks = result["workPlan"]
    if 0 <= source < len(blocks):
        block = blocks.pop(source)
        blocks.insert(max(0, min(target, len(blocks))), block)
    return renumber_work_plan(result)


# Progress


def empty_progress() -> ProgressData:
    return {
        "client": {"name": "", "description": ""},
        "workPlan": {"brief": "", "points": [{"text": "", "done": False}]},
        "calendar": [],
        "assetsUrl": "",
        "payments": {
            "agreedPrice": "",
            "entries": [{"amount": "", "description": "", "date": ""}],
            "metaAdsBalance": "",
        },
    }


def _progress_points(value: Any) -> list[ProgressPoint]:
    if not isinstance(value, list):
        return []
    points: list[ProgressPoint] = []
    for item in value:
        point = _obj(item)
        points.append({"text": _str(point.get("text")), "done": bool(point.get("done"))})
    return points


def _calendar_items(value: Any) -> list[CalendarItem]:
    if not isinstance(value, list):
        return []
    items: list[CalendarItem] = []
    for raw in value:
        item = _obj(raw)
        items.append(
            {
                "date": _str(item.get("date")),
                "time": _str(item.get("time")),
                "title": _str(item.get("title")),
                "points": _str_list(item.get("points")),
            }
        )
    return items


def _payment_entries(value: Any) -> list[PaymentEntry]:
    if not isinstance(value, list):
        return []
    entries: list[PaymentEntry] = []
    for raw in value:
        entry = _obj(raw)
        entries.append(
            {
                "amount": _str(entry.get("amount")),
                "description": _str(entry.get("description")),
                "date": _str(entry.get("date")),
            }
        )
    return entries


def _progress_from(data: dict[str, Any]) -> ProgressData:
    base = empty_progress()
    work_plan = _obj(data.get("workPlan"))
    payments = _obj(data.get("payments"))
    return {
        "client": _client(data.get("client")),
        "workPlan": {
            "brief": _str(work_plan.get("brief")),
            "points": (
                _progress_points(work_plan["points"])
                if "points" in work_plan
                else base["workPlan"]["points"]
            ),
        },
        "calendar": (
            _calendar_items(data["calendar"]) if "calendar" in data else base["calendar"]
        ),
        "assetsUrl": _str(data.get("assetsUrl")),
        "payments": {
            "agreedPrice": _str(payments.get("agreedPrice")),
            "entries": (
                _payment_entries(payments["entries"])
                if "entries" in payments
                else base["payments"]["entries"]
            ),
            "metaAdsBalance": _str(payments.get("metaAdsBalance")),
        },
    }


def normalize_progress(value: Any) -> ProgressData:
    data = _load(value)
    if data is None:
        return empty_progress()
    return _progress_from(data)


def is_progress_available(doc: Any) -> bool:
    client = _obj(_obj(doc).get("client"))
    return bool(_str(client.get("name")).strip())


_AMOUNT_NOISE = re.compile(r"[^0-9.]+")
_LEADING_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def parse_amount(value: Any) -> float:
    """Read a money string such as ``"$1,200.50 USD"``; unreadable means 0."""
    cleaned = _AMOUNT_NOISE.sub("", _str(value))
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return 0.0
    number = float(match.group())
    return number if math.isfinite(number) else 0.0


def _calendar_moment(item: CalendarItem, now: datetime) -> datetime | None:
    time_text = item["time"].strip() or "00:00"
    try:
        moment = datetime.fromisoformat(f"{item['date'].strip()}T{time_text}")
    except ValueError:
        return None
    if moment.tzinfo is None and now.tzinfo is not None:
        return moment.replace(tzinfo=now.tzinfo)
    if moment.tzinfo is not None and now.tzinfo is None:
        return moment.astimezone(dt_timezone.utc).replace(tzinfo=None)
    return moment


def calendar_timeline(doc: ProgressData, now: datetime) -> dict[str, Any]:
    """
    Calendar entries in display order.

    Entries without a date are left out. Entries whose date cannot be read
    follow the dated ones in their stored order. ``nextIndex`` points at the
    first entry that is still ahead of ``now``, or the last entry.
    """
    dated: list[tuple[CalendarItem, datetime]] = []
    undated: list[CalendarItem] = []
    for item in doc["calendar"]:
        if not item["date"].strip():
            continue
        moment = _calendar_moment(item, now)
        if moment is None:
            undated.append(item)
        else:
            dated.append((item, moment))
    dated.sort(key=lambda pair: pair[1])

    items: list[dict[str, Any]] = [
        {**item, "at": moment.isoformat()} for item, moment in dated
    ]
    items.extend({**item, "at": ""} for item in undated)

    next_index = -1
    for index, (_, moment) in enumerate(dated):
        if moment >= now:
            next_index = index
            break
    if next_index < 0 and items:
        next_index = len(items) - 1
    return {"items": items, "nextIndex": next_index}


def progress_summary(doc: ProgressData, now: datetime) -> dict[str, Any]:
    points = [p for p in doc["workPlan"]["points"] if p["text"].strip()]
    done = sum(1 for p in points if p["done"])
    total = len(points)
    percent = int(done * 100 / total + 0.5) if total else 0

    entries = [
        e for e in doc["payments"]["entries"] if e["amount"].strip() or e["description"].strip()
    ]
    paid = sum(parse_amount(e["amount"]) for e in entries)
    agreed = parse_amount(doc["payments"]["agreedPrice"])
    ratio = min(paid / agreed, 1.0) if agreed > 0 else 0.0

    return {
        "plan": {"done": done, "total": total, "percent": percent},
        "payments": {
            "entries": entries,
            "paidTotal": paid,
            "agreedPrice": agreed,
            "paidRatio": ratio,
        },
        "calendar": calendar_timeline(doc, now),
    }


# Meta-Ads


def _empty_metrics() -> AdMetrics:
    return {"reach": "", "messages": "", "followers": "", "amountSpent": "", "timeDays": ""}


def empty_meta() -> MetaData:
    return {
        "client": {"name": "", "description": ""},
        "walletBalance": "",
        "walletUpdatedAt": "",
        "results": {
            "reach": "",
            "messages": "",
            "campaigns": "",
            "followers": "",
            "amountSpent": "",
            "timeDays": "",
            "amountSpentUpdatedAt": "",
            "mediaUrl": "",
            "mediaLabel": "",
            "linkUrl": "",
            "linkLabel": "",
            "campaignItems": [],
        },
        "plan": {"title": "", "points": [""]},
    }


def _metrics(value: Any) -> AdMetrics:
    metrics = _obj(value)
    return {
        "reach": _str(metrics.get("reach")),
        "messages": _str(metrics.get("messages")),
        "followers": _str(metrics.get("followers")),
        "amountSpent": _str(metrics.get("amountSpent")),
        "timeDays": _str(metrics.get("timeDays")),
    }


def _ad(value: Any) -> Ad:
    ad = _obj(value)
    metrics = ad.get("metrics")
    if metrics is None:
        # Older ads kept their numbers directly on the ad.
        metrics = ad
    return {"name": _str(ad.get("name")), "metrics": _metrics(metrics)}


def _ad_set(value: Any) -> AdSet:
    ad_set = _obj(value)
    ads = ad_set.get("ads")
    return {
        "name": _str(ad_set.get("name")),
        "ads": [_ad(ad) for ad in ads] if isinstance(ads, list) else [],
    }


def _campaign(value: Any) -> Campaign:
    campaign = _obj(value)
    ad_sets = campaign.get("adSets")
    return {
        "name": _str(campaign.get("name")),
        "adSets": [_ad_set(s) for s in ad_sets] if isinstance(ad_sets, list) else [],
    }


def _meta_from(data: dict[str, Any]) -> MetaData:
    base = empty_meta()
    results = _obj(data.get("results"))
    plan = _obj(data.get("plan"))
    campaign_items = results.get("campaignItems")
    return {
        "client": _client(data.get("client")),
        "walletBalance": _str(data.get("walletBalance")),
        "walletUpdatedAt": _str(data.get("walletUpdatedAt")),
        "results": {
            "reach": _str(results.get("reach")),
            "messages": _str(results.get("messages")),
            "campaigns": _str(results.get("campaigns")),
            "followers": _str(results.get("followers")),
            "amountSpent": _str(results.get("amountSpent")),
            "timeDays": _str(results.get("timeDays")),
            "amountSpentUpdatedAt": _str(results.get("amountSpentUpdatedAt")),
            "mediaUrl": _str(results.get("mediaUrl")),
            "mediaLabel": _str(results.get("mediaLabel")),
            "linkUrl": _str(results.get("linkUrl")),
            "linkLabel": _str(results.get("linkLabel")),
            "campaignItems": (
                [_campaign(c) for c in campaign_items]
                if isinstance(campaign_items, list)
                else base["results"]["campaignItems"]
            ),
        },
        "plan": {
            "title": _str(plan.get("title")),
            "points": _str_list(plan["points"]) if "points" in plan else base["plan"]["points"],
        },
    }


def normalize_meta(value: Any) -> MetaData:
    data = _load(value)
    if data is None:
        return empty_meta()
    return _meta_from(data)


def is_meta_available(doc: Any) -> bool:
    client = _obj(_obj(doc).get("client"))
    return bool(_str(client.get("name")).strip())


def seed_campaigns_from_legacy(doc: MetaData) -> MetaData:
    """
    Wrap flat, pre-campaign result numbers into one Campaign > Ad Set > Ad.

    Does nothing when campaigns already exist or every flat number is blank,
    so it is safe to run on every edit.
    """
    results = doc["results"]
    if results.get("campaignItems"):
        return doc
    if not any(_str(results.get(key)).strip() for key in METRIC_KEYS):
        return doc
    migrated = copy.deepcopy(doc)
    migrated["results"]["campaignItems"] = [
        {
            "name": "",
            "adSets": [
                {
                    "name": "",
                    "ads": [{"name": "", "metrics": _metrics(results)}],
                }
            ],
        }
    ]
    return migrated


def normalize_meta_for_edit(value: Any) -> MetaData:
    return seed_campaigns_from_legacy(normalize_meta(value))


def _spend_signature(doc: MetaData) -> tuple[str, ...]:
    results = doc["results"]
    spends = [results["amountSpent"]]
    for campaign in results["campaignItems"]:
        for ad_set in campaign["adSets"]:
            spends.extend(ad["metrics"]["amountSpent"] for ad in ad_set["ads"])
    return tuple(spends)


def stamp_meta_changes(previous: MetaData | None, current: MetaData, now: datetime) -> MetaData:
    """Refresh the "updated at" stamps for wallet balance and amount spent."""
    before = previous if previous is not None else empty_meta()
    result = copy.deepcopy(current)
    stamp = _iso(now)

    if result["walletBalance"] != before["walletBalance"]:
        result["walletUpdatedAt"] = stamp
    elif not result["walletUpdatedAt"]:
        result["walletUpdatedAt"] = before["walletUpdatedAt"]

    if _spend_signature(result) != _spend_signature(before):
        result["results"]["amountSpentUpdatedAt"] = stamp
    elif not result["results"]["amountSpentUpdatedAt"]:
        result["results"]["amountSpentUpdatedAt"] = before["results"]["amountSpentUpdatedAt"]
    return result


_METRIC_NOISE = re.compile(r"[, ]")


def parse_metric(value: Any) -> float:
    cleaned = _METRIC_NOISE.sub("", _str(value))
    if not cleaned:
        return 0.0
    try:
        number = float(cleaned)
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0


def sum_metrics(metrics_list: list[AdMetrics]) -> dict[str, float]:
    totals = {key: 0.0 for key in METRIC_KEYS}
    for metrics in metrics_list:
        for key in METRIC_KEYS:
            totals[key] += parse_metric(metrics.get(key))
    return totals


def ad_set_totals(ad_set: AdSet) -> dict[str, float]:
    return sum_metrics([ad["metrics"] for ad in ad_set["ads"]])


def campaign_totals(campaign: Campaign) -> dict[str, float]:
    return sum_metrics(
        [ad["metrics"] for ad_set in campaign["adSets"] for ad in ad_set["ads"]]
    )


def results_totals(doc: MetaData) -> dict[str, Any]:
    campaigns = doc["results"]["campaignItems"]
    ad_sets = [ad_set for campaign in campaigns for ad_set in campaign["adSets"]]
    ads = [ad for ad_set in ad_sets for ad in ad_set["ads"]]
    return {
        "campaigns": len(campaigns),
        "adSets": len(ad_sets),
        "ads": len(ads),
        "totals": sum_metrics([ad["metrics"] for ad in ads]),
        "byCampaign": [
            {
                "totals": campaign_totals(campaign),
                "adSets": [ad_set_totals(ad_set) for ad_set in campaign["adSets"]],
            }
            for campaign in campaigns
        ],
    }


# Kind dispatch

_TEMPLATES: dict[str, Callable[[], Any]] = {
    "proposal": empty_proposal,
    "progress": empty_progress,
    "meta": empty_meta,
}

_BUILDERS: dict[str, Callable[[dict[str, Any]], Any]] = {
    "proposal": _proposal_from,
    "progress": _progress_from,
    "meta": _meta_from,
}

_AVAILABILITY: dict[str, Callable[[Any], bool]] = {
    "proposal": is_proposal_available,
    "progress": is_progress_available,
    "meta": is_meta_available,
}


def _check_kind(kind: str) -> str:
    if kind not in PAGE_KINDS:
        raise ValueError(f"Unknown page kind: {kind!r}")
    return kind


def empty_template(kind: str) -> Any:
    return _TEMPLATES[_check_kind(kind)]()


def normalize(kind: str, value: Any) -> Any:
    _check_kind(kind)
    data = _load(value)
    if data is None:
        return empty_template(kind)
    return _BUILDERS[kind](data)


def parse_payload(kind: str, value: Any) -> Any:
    """Like ``normalize`` but a submitted string that is not JSON raises ``ValueError``."""
    _check_kind(kind)
    data = _load(value, strict=True)
    if data is None:
        return empty_template(kind)
    return _BUILDERS[kind](data)


def is_available(kind: str, doc: Any) -> bool:
    return _AVAILABILITY[_check_kind(kind)](doc)
