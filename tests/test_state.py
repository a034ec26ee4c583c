import pytest

from checkmenu.image import CapturedImage, ImageSourceKind
from checkmenu.ocr import RecognizedText
from checkmenu.permission import AuthorizationState
from checkmenu.pipeline import PipelineState

from conftest import make_pixels


def _image(generation):
    return CapturedImage(pixels=make_pixels(), generation=generation, source=ImageSourceKind.CAMERA)


def _full_state():
    image = _image(1)
    return (
        PipelineState(authorization=AuthorizationState.GRANTED)
        .with_image(image)
        .with_recognized(RecognizedText(lines=("SOUPE",), generation=1))
        .with_translation("SOUP")
    )


def test_initial_state():
    state = PipelineState()
    assert state.authorization is AuthorizationState.UNKNOWN
    assert state.image is None and state.recognized is None and state.translated is None
    assert not state.can_recognize
    assert not state.can_translate
    assert not state.show_permission_notice


def test_new_image_cascades_invalidation():
    state = _full_state()
    assert state.visible_translation == "SOUP"

    replaced = state.with_image(_image(2))
    assert replaced.image.generation == 2
    assert replaced.recognized is None
    assert replaced.translated is None
    assert replaced.reveal_translation is False
    assert replaced.authorization is AuthorizationState.GRANTED


def test_new_recognition_drops_translation():
    state = _full_state().with_recognized(RecognizedText(lines=("AUTRE",), generation=1))
    assert state.translated is None
    assert state.visible_translation is None


def test_recognized_text_must_match_image():
    with pytest.raises(ValueError):
        PipelineState(recognized=RecognizedText(lines=("A",), generation=1))
    with pytest.raises(ValueError):
        PipelineState(image=_image(2), recognized=RecognizedText(lines=("A",), generation=1))


def test_translation_requires_non_empty_recognition():
    image = _image(1)
    with pytest.raises(ValueError):
        PipelineState(image=image, translated="X")
    with pytest.raises(ValueError):
        PipelineState(image=image, recognized=RecognizedText(lines=(), generation=1), translated="X")
    with pytest.raises(ValueError):
        PipelineState(image=image, recognized=RecognizedText(lines=("A",), generation=1), reveal_translation=True)


def test_cleared_keeps_authorization_only():
    state = _full_state().with_authorization(AuthorizationState.DENIED).cleared()
    assert state == PipelineState(authorization=AuthorizationState.DENIED)
    assert state.show_permission_notice
