from typing import get_type_hints

from manga_aggregator.aggregator import CatalogAggregator


def test_aggregator_uses_named_interface_types_instead_of_object() -> None:
    hints = get_type_hints(CatalogAggregator.__init__)

    assert hints["sources_by_kind"] is not object
    assert hints["fallback"] is not object
    assert hints["detail_sources"] is not object
