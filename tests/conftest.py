import pytest

from helpers.loader import forms_dir, load_example_form, load_example_store


@pytest.fixture(scope="session")
def example_forms_dir():
    return forms_dir()

@pytest.fixture(scope="session")
def store():
    return load_example_store()

@pytest.fixture
def feedback_form():
    return load_example_form("customer_feedback.yaml")

@pytest.fixture
def newsletter_form():
    return load_example_form("newsletter_signup.json")
