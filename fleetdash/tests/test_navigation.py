"""
Unit tests for menu filtering.
"""

from fleetdash.app.core.permissions import ADMIN_ALLOWED_PAGES
from fleetdash.app.services.navigation import (
    DASHBOARD_MENU,
    MenuItem,
    filter_menu,
    filter_menu_tree,
    is_known_page,
)

MENU = (
    MenuItem("Domů", "/homepage"),
    MenuItem("Vozidla", "/dashboard/auta"),
    MenuItem("Mapa", "/dashboard/auta/mapa"),
    MenuItem("Grafy", "/dashboard/grafy"),
)


def test_empty_grant_hides_everything():
    assert filter_menu(MENU, []) == []
    assert filter_menu(MENU, None) == []
    assert filter_menu_tree(DASHBOARD_MENU, []) == []


def test_keeps_allowed_items_in_menu_order():
    visible = filter_menu(MENU, ["/dashboard/grafy", "/homepage"])
    assert [item.href for item in visible] == ["/homepage", "/dashboard/grafy"]


def test_prefix_grant_includes_sub_routes():
    visible = filter_menu(MENU, ["/dashboard/auta"])
    assert [item.href for item in visible] == ["/dashboard/auta", "/dashboard/auta/mapa"]


def test_wildcard_shows_full_menu():
    assert filter_menu(DASHBOARD_MENU, ["*"]) == list(DASHBOARD_MENU)


def test_admin_grant_shows_full_menu():
    assert len(filter_menu_tree(DASHBOARD_MENU, ADMIN_ALLOWED_PAGES)) == len(DASHBOARD_MENU)


def test_tree_filters_children_independently():
    menu = (
        MenuItem("Noviny", "/dashboard/noviny", children=(
            MenuItem("Trasa", "/dashboard/noviny/distribuce/driver-route"),
        )),
        MenuItem("Vozidla", "/dashboard/auta", children=(
            MenuItem("Mapa", "/dashboard/auta/mapa"),
        )),
    )

    visible = filter_menu_tree(menu, ["/dashboard/auta"])

    assert len(visible) == 1
    assert visible[0].href == "/dashboard/auta"
    assert [child.href for child in visible[0].children] == ["/dashboard/auta/mapa"]


def test_child_is_hidden_when_parent_is_hidden():
    visible = filter_menu_tree(DASHBOARD_MENU, ["/dashboard/auta/mapa"])
    assert visible == []


def test_is_known_page():
    assert is_known_page("/dashboard/auta")
    assert is_known_page("/dashboard/auta/7")
    assert is_known_page("/homepage/")
    assert not is_known_page("/nowhere")
    assert not is_known_page("/")


def test_single_segment_pages_own_no_sub_routes():
    assert is_known_page("/dashboard")
    assert not is_known_page("/dashboard/anything")
    assert not is_known_page("/homepage/news")
    assert is_known_page("/dashboard/noviny/distribuce/driver-route/3")
