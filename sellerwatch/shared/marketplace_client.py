#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Marketplace API client for fetching tracked users, listings and payouts.
Implements retry logic, error handling, and response parsing.

Every method returns an APIResponse instead of raising, so transport and
parsing failures reach the aggregation engine as values.
"""

import json
import math
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from .config import ApiConfig
from .logging_setup import get_logger
from .models import APIResponse, DateWindow, ErrorKind, ListingItem, Page, Payout
from .utils import format_query_date, parse_datetime, safe_float

logger = get_logger(__name__)

# Status codes worth another attempt; anything else non-2xx fails immediately
RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class MarketplaceClient:
    """Client for the marketplace REST API"""

    def __init__(self, config: ApiConfig, session: Optional[requests.Session] = None,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initialize marketplace client

        Args:
            config: Validated API configuration
            session: Optional pre-built requests session
            sleep: Sleep function used between retries
        """
        self.config = config
        self.base_url = config.base_url
        self.timeout = config.timeout
        self.retry_attempts = config.retry_attempts
        self.retry_backoff = config.retry_backoff
        self._sleep = sleep
        self.session = session or requests.Session()
        self.session.headers.update({
            'Accept': 'application/json',
            'User-Agent': 'SellerWatch/1.0'
        })

    def _url(self, *parts: str) -> str:
        return "/".join([self.base_url] + [str(p).strip('/') for p in parts if p])

    def _make_request(self, url: str, params: Optional[Dict[str, Any]] = None) -> APIResponse:
        """
        GET a JSON document with retry logic

        Args:
            url: Absolute URL
            params: Query parameters

        Returns:
            APIResponse with the decoded JSON body or a classified error
        """
        last_error = None

        for attempt in range(self.retry_attempts):
            try:
                logger.debug(f"GET {url} params={params} (attempt {attempt + 1}/{self.retry_attempts})")
                response = self.session.get(url, params=params, timeout=self.timeout)

                if 200 <= response.status_code < 300:
                    try:
                        return APIResponse.ok(response.json())
                    except (json.JSONDecodeError, ValueError) as e:
                        error_msg = f"Invalid JSON response from {url}: {e}"
                        logger.error(error_msg)
                        return APIResponse.err(ErrorKind.MALFORMED, error_msg)

                error_msg = f"HTTP {response.status_code}: {response.text[:200]}"
                if response.status_code not in RETRYABLE_STATUS:
                    logger.warning(f"Request to {url} failed: {error_msg}")
                    return APIResponse.err(ErrorKind.TRANSPORT, error_msg)
                logger.warning(f"Request to {url} failed (retryable): {error_msg}")
                last_error = error_msg

            except requests.exceptions.Timeout:
                last_error = f"Request timeout after {self.timeout}s"
                logger.warning(f"Attempt {attempt + 1} timed out")

            except requests.exceptions.ConnectionError as e:
                last_error = f"Connection error: {e}"
                logger.warning(f"Attempt {attempt + 1} connection failed")

            except requests.exceptions.RequestException as e:
                last_error = f"Request failed: {e}"
                logger.error(f"Attempt {attempt + 1} failed: {e}")

            # Exponential backoff before retry (except on last attempt)
            if attempt < self.retry_attempts - 1:
                backoff_time = self.retry_backoff * (2 ** attempt)
                logger.debug(f"Retrying in {backoff_time}s...")
                self._sleep(backoff_time)

        logger.error(f"All {self.retry_attempts} attempts failed for {url}. Last error: {last_error}")
        return APIResponse.err(ErrorKind.TRANSPORT, last_error or "Unknown transport error")

    def fetch_users(self) -> APIResponse:
        """
        Fetch the tracked seller accounts

        Returns:
            APIResponse whose data is the list of entity identifiers
        """
        response = self._make_request(self._url(self.config.users_path))
        if not response.success:
            return response

        body = response.data
        users = body.get('users') if isinstance(body, dict) else None
        if users is None:
            users = []
        if not isinstance(users, list):
            return APIResponse.err(ErrorKind.MALFORMED, "Users response has no 'users' array")

        entities = [str(u).strip() for u in users if str(u).strip()]
        logger.info(f"Fetched {len(entities)} tracked users")
        return APIResponse.ok(entities)

    def fetch_listings_page(self, entity: str, page_idx: int, page_size: int,
                            window: Optional[DateWindow] = None) -> APIResponse:
        """
        Fetch one page of listings started inside a window

        Args:
            entity: Seller account identifier
            page_idx: Page index (origin chosen by the caller)
            page_size: Requested page size
            window: Date window translated to startFrom/startTo

        Returns:
            APIResponse whose data is a Page of ListingItem
        """
        params: Dict[str, Any] = {'pageSize': page_size, 'pageIdx': page_idx}
        if window is not None:
            params['startFrom'] = format_query_date(window.start)
            params['startTo'] = format_query_date(window.end)

        response = self._make_request(self._url(self.config.listings_path, entity), params)
        if not response.success:
            return response

        body = response.data
        listings = body.get('listings', body) if isinstance(body, dict) else None
        if not isinstance(listings, dict):
            return APIResponse.err(ErrorKind.MALFORMED, f"Listings response for {entity} is not an object")

        item_array = listings.get('ItemArray') or {}
        raw_items = item_array.get('Items') if isinstance(item_array, dict) else None
        if raw_items is None:
            raw_items = []
        if not isinstance(raw_items, list):
            return APIResponse.err(ErrorKind.MALFORMED, f"Listings response for {entity} has no Items array")

        items = []
        for raw in raw_items:
            item = _parse_listing_item(raw)
            if item is not None:
                items.append(item)

        has_more = listings.get('HasMoreItems')
        pagination = listings.get('PaginationResult') or {}
        try:
            total = _parse_total(pagination.get('TotalNumberOfEntries') if isinstance(pagination, dict) else None)
        except ValueError as e:
            return APIResponse.err(ErrorKind.MALFORMED, f"Listings response for {entity}: {e}")

        return APIResponse.ok(Page(
            records=items,
            has_more=bool(has_more) if has_more is not None else None,
            total=total,
        ))

    def fetch_payouts_page(self, entity: str, page_idx: int, page_size: int,
                           window: Optional[DateWindow] = None) -> APIResponse:
        """
        Fetch one page of payouts

        The payouts endpoint takes no date parameters; window is accepted for
        interface symmetry and ignored.

        Returns:
            APIResponse whose data is a Page of Payout
        """
        params = {'pageSize': page_size, 'pageIdx': page_idx}
        response = self._make_request(self._url(self.config.payouts_path, entity), params)
        if not response.success:
            return response

        body = response.data
        envelope = body.get('payouts') if isinstance(body, dict) else None
        if not isinstance(envelope, dict):
            return APIResponse.err(ErrorKind.MALFORMED, f"Payouts response for {entity} has no 'payouts' object")

        raw_payouts = envelope.get('payouts')
        if raw_payouts is None:
            raw_payouts = []
        if not isinstance(raw_payouts, list):
            return APIResponse.err(ErrorKind.MALFORMED, f"Payouts response for {entity} has no payouts array")

        payouts = []
        for raw in raw_payouts:
            payout = _parse_payout(raw)
            if payout is not None:
                payouts.append(payout)

        # Exhausted on an empty 'next' link or a short page
        has_more = None
        if 'next' in envelope:
            has_more = bool(envelope.get('next')) and len(raw_payouts) >= page_size
        try:
            total = _parse_total(envelope.get('total'))
        except ValueError as e:
            return APIResponse.err(ErrorKind.MALFORMED, f"Payouts response for {entity}: {e}")

        return APIResponse.ok(Page(
            records=payouts,
            has_more=has_more,
            total=total,
        ))


def _parse_total(value: Any) -> Optional[int]:
    """Reported entry count, None when absent; raises ValueError on anything else."""
    if value is None:
        return None
    number = safe_float(value, default=None)
    if number is None or not math.isfinite(number) or number < 0 or number != int(number):
        raise ValueError(f"invalid total entry count {value!r}")
    return int(number)


def _parse_listing_item(raw: Any) -> Optional[ListingItem]:
    try:
        selling = raw.get('SellingStatus') or {}
        price = selling.get('CurrentPrice') or {}
        details = raw.get('ListingDetails') or {}
        unit_price = safe_float(price.get('Value'), default=None)
        start_time = parse_datetime(details.get('StartTime'))
        if unit_price is None or start_time is None:
            raise ValueError("missing price or start time")
        return ListingItem(
            item_id=str(raw.get('ItemID', '')),
            title=str(raw.get('Title', '')),
            quantity=int(raw.get('Quantity') or 0),
            unit_price=unit_price,
            start_time=start_time,
            currency=str(price.get('CurrencyID') or 'USD'),
            listing_status=str(selling.get('ListingStatus') or ''),
            view_url=details.get('ViewItemURL'),
        )
    except (AttributeError, KeyError, ValueError, TypeError) as e:
        logger.warning(f"Skipping unparsable listing item: {e}")
        logger.debug(f"Listing data: {raw}")
        return None


def _parse_payout(raw: Any) -> Optional[Payout]:
    try:
        amount_raw = raw.get('amount') or {}
        amount = safe_float(amount_raw.get('value'), default=None)
        payout_date = parse_datetime(raw.get('payoutDate'))
        if amount is None or payout_date is None:
            raise ValueError("missing amount or payout date")
        return Payout(
            payout_id=str(raw.get('payoutId', '')),
            amount=amount,
            payout_date=payout_date,
            currency=str(amount_raw.get('currency') or 'USD'),
            status=str(raw.get('payoutStatus') or ''),
            transaction_count=int(raw.get('transactionCount') or 0),
        )
    except (AttributeError, KeyError, ValueError, TypeError) as e:
        logger.warning(f"Skipping unparsable payout: {e}")
        logger.debug(f"Payout data: {raw}")
        return None
