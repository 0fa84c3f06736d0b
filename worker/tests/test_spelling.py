from smartnotes.errors import BackendUnavailable
from smartnotes.services.spelling import SpellCorrector

from conftest import FakeBackend


def test_corrected_text_is_returned_stripped():
    backend = FakeBackend(spelling="  Dependency injection in Spring.\n")
    assert SpellCorrector(backend, "m").correct("Dependancy injektion in Spring.", "English") == "Dependency injection in Spring."


def test_failure_keeps_original():
    backend = FakeBackend(spelling=BackendUnavailable("timeout"))
    assert SpellCorrector(backend, "m").correct("teh text", "English") == "teh text"


def test_empty_answer_keeps_original():
    backend = FakeBackend(spelling="")
    assert SpellCorrector(backend, "m").correct("teh text", None) == "teh text"


def test_disabled_or_blank_input_makes_no_call():
    backend = FakeBackend(spelling="x")
    assert SpellCorrector(backend, "m", enabled=False).correct("teh text", "English") == "teh text"
    assert SpellCorrector(backend, "m").correct("   ", "English") == "   "
    assert backend.count("spelling") == 0
