"""Test basic project structure and imports."""


def test_package_version():
    from contact_address_service import __version__
    assert __version__ == "0.1.0"


def test_basic_imports():
    import contact_address_service.models
    import contact_address_service.services
    import contact_address_service.repositories
    import contact_address_service.api
    import contact_address_service.config

    assert contact_address_service.models is not None


def test_address_routes_registered():
    from contact_address_service.api.app import app

    routes = {(route.path, method) for route in app.routes for method in getattr(route, "methods", ())}
    base = "/api/contacts/{contact_id}/addresses"
    assert (base, "POST") in routes
    assert (base, "GET") in routes
    assert (base + "/{address_id}", "GET") in routes
    assert (base + "/{address_id}", "PUT") in routes
    assert (base + "/{address_id}", "DELETE") in routes
