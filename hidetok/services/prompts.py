from __future__ import annotations

from typing import Any, Dict, Mapping


GENDER_MAP: Dict[str, str] = {
    'male': 'male',
    'female': 'female',
    'other': 'androgynous',
}

SKIN_TONE_MAP: Dict[str, str] = {
    'tone1': 'very light skin',
    'tone2': 'light skin',
    'tone3': 'medium skin',
    'tone4': 'olive skin',
    'tone5': 'brown skin',
    'tone6': 'dark skin',
}

HAIR_STYLE_MAP: Dict[str, str] = {
    'short': 'short hair',
    'medium': 'medium-length hair',
    'long': 'long hair',
    'curly': 'curly hair',
    'wavy': 'wavy hair',
    'bald': 'bald head',
}

AGE_RANGE_MAP: Dict[str, str] = {
    'young': 'young adult in their 20s',
    'adult': 'adult in their 30s-40s',
    'senior': 'mature adult in their 50s-60s',
}

EYE_COLOR_MAP: Dict[str, str] = {
    'brown': 'brown eyes',
    'blue': 'blue eyes',
    'green': 'green eyes',
    'hazel': 'hazel eyes',
    'black': 'dark brown almost black eyes',
    'gray': 'gray eyes',
}

FACE_SHAPE_MAP: Dict[str, str] = {
    'oval': 'oval face shape',
    'round': 'round face shape',
    'angular': 'angular chiseled face shape',
    'long': 'elongated face shape',
    'square': 'square jawline face shape',
}

FACIAL_HAIR_MAP: Dict[str, str] = {
    'none': '',
    'stubble': 'light stubble facial hair',
    'full_beard': 'full thick beard',
    'mustache': 'mustache',
    'goatee': 'goatee beard',
}

ACCESSORIES_MAP: Dict[str, str] = {
    'none': '',
    'glasses': 'wearing prescription glasses',
    'sunglasses': 'wearing sunglasses',
    'earrings': 'wearing earrings',
    'cap': 'wearing a baseball cap',
    'headscarf': 'wearing a headscarf',
    'piercing': 'with a nose piercing',
}

EXPRESSION_MAP: Dict[str, str] = {
    'smile': 'warm genuine smile',
    'serious': 'serious confident look',
    'relaxed': 'relaxed calm expression',
    'confident': 'confident self-assured smirk',
    'mysterious': 'enigmatic mysterious gaze',
}

BACKGROUND_MAP: Dict[str, str] = {
    'cafe': 'cozy coffee shop interior with warm lighting',
    'park': 'lush green park with trees and natural light',
    'city': 'urban city street with buildings in the background',
    'beach': 'sandy beach with ocean waves in the background',
    'indoor': 'modern minimalist room with soft natural window light',
    'sunset': 'golden hour sunset with warm orange and pink sky',
}

PHOTO_STYLE_MAP: Dict[str, str] = {
    'natural': 'natural iPhone selfie photo, no filters, realistic skin texture with pores and subtle imperfections',
    'cinematic': 'cinematic color grading, dramatic lighting, film grain, anamorphic lens flare',
    'editorial': 'high fashion editorial photography, sharp focus, magazine quality lighting',
    'vintage': 'vintage film photography, warm faded tones, soft grain, retro color palette',
    'moody': 'moody dramatic portrait, deep shadows, high contrast, desaturated tones',
}


def _pick(table: Mapping[str, str], selections: Mapping[str, Any], key: str, default: str) -> str:
    value = selections.get(key)
    if not isinstance(value, str):
        return default
    return table.get(value) or default


def build_portrait_prompt(selections: Mapping[str, Any]) -> str:
    gender = _pick(GENDER_MAP, selections, 'gender', 'person')
    skin = _pick(SKIN_TONE_MAP, selections, 'skinTone', 'medium skin')
    hair = _pick(HAIR_STYLE_MAP, selections, 'hairStyle', 'short hair')
    age = _pick(AGE_RANGE_MAP, selections, 'ageRange', 'adult')
    eyes = _pick(EYE_COLOR_MAP, selections, 'eyeColor', 'brown eyes')
    face = _pick(FACE_SHAPE_MAP, selections, 'faceShape', '')
    facial_hair = _pick(FACIAL_HAIR_MAP, selections, 'facialHair', '')
    accessories = _pick(ACCESSORIES_MAP, selections, 'accessories', '')
    expression = _pick(EXPRESSION_MAP, selections, 'expression', 'natural expression')
    background = _pick(BACKGROUND_MAP, selections, 'background', 'blurred everyday location')
    style = _pick(PHOTO_STYLE_MAP, selections, 'photoStyle', 'natural photo')

    details = ', '.join(part for part in (face, facial_hair, accessories) if part)
    details_text = f', {details}' if details else ''

    return (
        f'Casual selfie photo of a {gender} {age} with {skin}, {hair}, {eyes}{details_text}. '
        f'{expression}, taken with a smartphone front camera, shot from slightly above at arm\'s length. '
        f'Background: {background}. {style}, shallow depth of field, 4K quality.'
    )
