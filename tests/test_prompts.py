from hidetok.services.prompts import build_portrait_prompt


def test_full_selection_prompt():
    prompt = build_portrait_prompt(
        {
            "gender": "female",
            "skinTone": "tone2",
            "hairStyle": "curly",
            "ageRange": "young",
            "eyeColor": "green",
            "faceShape": "round",
            "facialHair": "none",
            "accessories": "glasses",
            "expression": "smile",
            "background": "beach",
            "photoStyle": "vintage",
        }
    )

    assert prompt.startswith(
        "Casual selfie photo of a female young adult in their 20s with light skin, curly hair, green eyes, "
        "round face shape, wearing prescription glasses. warm genuine smile,"
    )
    assert "Background: sandy beach with ocean waves in the background." in prompt
    assert prompt.endswith("retro color palette, shallow depth of field, 4K quality.")


def test_unknown_and_missing_selections_fall_back():
    prompt = build_portrait_prompt({"gender": "robot", "skinTone": 3})

    assert prompt.startswith("Casual selfie photo of a person adult with medium skin, short hair, brown eyes. ")
    assert "natural expression" in prompt
    assert "Background: blurred everyday location." in prompt
    assert "natural photo, shallow depth of field" in prompt
