"""
Request dependencies resolving the collaborators built at startup.
"""
from fastapi import Request

from listings.history import SearchHistory
from listings.source import ListingBoard

from .proxy import SheetsProxy


def get_proxy(request: Request) -> SheetsProxy:
    return request.app.state.proxy


def get_board(request: Request) -> ListingBoard:
    return request.app.state.board


def get_history(request: Request) -> SearchHistory:
    return request.app.state.history
