import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield

        # Clear all databases and drain the event store after every test
        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture()
def billing_address():
    return {
        "first_name": "Siti",
        "last_name": "Rahma",
        "email": "siti@example.com",
        "phone": "+62811000111",
        "address_line_1": "Jl. Merdeka 10",
        "address_line_2": None,
        "city": "Bandung",
        "state": "Jawa Barat",
        "postal_code": "40115",
        "country": "ID",
    }


@pytest.fixture()
def shipping_address():
    return {
        "first_name": "Siti",
        "last_name": "Rahma",
        "address_line_1": "Jl. Merdeka 10",
        "address_line_2": "Blok B",
        "city": "Bandung",
        "state": "Jawa Barat",
        "postal_code": "40115",
        "country": "ID",
    }
