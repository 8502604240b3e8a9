import pytest

PLANT_SENTENCES = [
    "Photosynthesis converts light energy into chemical energy inside plant cells.",
    "Chlorophyll absorbs light most strongly in the blue and red wavelengths.",
    "Plants release oxygen as a byproduct of photosynthesis during the day.",
    "Mitochondria use oxygen to release energy stored in glucose molecules.",
    "Glucose produced by plants feeds nearly every food chain on the planet.",
]
PLANT_TEXT = " ".join(PLANT_SENTENCES)


@pytest.fixture
def plant_sentences():
    return list(PLANT_SENTENCES)


@pytest.fixture
def plant_text():
    return PLANT_TEXT
