"""
Defining and serialising scheduler models must not trip pydantic's
deprecation warnings (``populate_by_name`` on 2.11+, ``.dict()``).
"""
import warnings

from social_scheduler import Client, Post
from social_scheduler.pydantic_compat import (
    PYDANTIC_V2_11_PLUS,
    get_model_config,
    model_dump_compat,
)


def _pydantic_warnings(caught):
    return [
        w for w in caught
        if "pydantic" in str(w.filename).lower()
        or "pydantic" in str(w.message).lower()
        or "populate_by_name" in str(w.message)
        or ".dict()" in str(w.message)
    ]


def test_model_definition_no_config_warnings():
    from social_scheduler import BaseFirestoreModel

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", DeprecationWarning)

        class Draft(BaseFirestoreModel):
            class Settings:
                name = "drafts"

            caption_text: str

        Draft(caption_text="x")

    assert _pydantic_warnings(caught) == []


def test_dump_uses_model_dump():
    client = Client(name="Acme", code="CLI1000")

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", DeprecationWarning)
        result = model_dump_compat(client, exclude={"id", "created_at"}, by_alias=True)

    assert _pydantic_warnings(caught) == []
    assert result == {"type": "client", "name": "Acme", "code": "CLI1000", "postsCount": 0, "calendars": []}


def test_models_accept_field_names_and_aliases():
    by_alias = Post(clientId="c", calendarId="k", caption="x", date="2030-01-01T00:00:00+00:00", imageUrl="u")
    by_name = Post(client_id="c", calendar_id="k", caption="x", date="2030-01-01T00:00:00+00:00", image_url="u")

    assert by_alias.client_id == by_name.client_id == "c"


def test_model_config_keys():
    config = get_model_config()

    if PYDANTIC_V2_11_PLUS:
        assert config["validate_by_name"] and config["validate_by_alias"]
    else:
        assert config["populate_by_name"]
