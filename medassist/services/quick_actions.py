"""Canned answers for the quick question buttons"""

QUICK_ACTIONS = [
    {
        "id": "symptoms",
        "label": "Common Symptoms",
        "icon": "💊",
        "content": (
            "Here is some general information about common symptoms:\n\n"
            "• Headache: rest, hydration and over-the-counter pain relief usually help. "
            "See a doctor if it is sudden and severe, follows a head injury, or comes with "
            "fever, stiff neck, confusion or vision changes.\n"
            "• Fever: fluids and rest; seek care if it is above 39.4°C (103°F), lasts more "
            "than three days, or comes with breathing difficulty.\n"
            "• Cough and sore throat: most are viral and clear within one to two weeks. "
            "Seek care for shortness of breath, chest pain or coughing up blood.\n"
            "• Stomach upset: small sips of water and bland food; seek care for severe pain, "
            "blood in stool or vomit, or signs of dehydration.\n\n"
            "Tell me which symptom you are experiencing and I can share more general information. "
            "This is not a diagnosis; please consult a healthcare professional for medical advice."
        ),
    },
    {
        "id": "medications",
        "label": "Medication Info",
        "icon": "💉",
        "content": (
            "General guidance on using medications safely:\n\n"
            "• Take medicines exactly as prescribed or as the label directs, and finish "
            "courses of antibiotics unless your doctor says otherwise.\n"
            "• Keep an up-to-date list of everything you take, including supplements, and "
            "share it with your doctor and pharmacist to avoid interactions.\n"
            "• Do not combine products that contain the same active ingredient, such as "
            "several cold remedies containing paracetamol (acetaminophen).\n"
            "• Ask your pharmacist about alcohol, driving and food interactions.\n"
            "• Store medicines away from heat, moisture and children.\n\n"
            "Ask me about a specific medication for general information. Never start, stop or "
            "change a prescription without talking to your healthcare provider."
        ),
    },
    {
        "id": "wellness",
        "label": "Wellness Tips",
        "icon": "🏃‍♂️",
        "content": (
            "Everyday wellness tips:\n\n"
            "• Move: aim for at least 150 minutes of moderate activity per week, plus "
            "muscle-strengthening twice a week.\n"
            "• Eat well: plenty of vegetables, fruit, whole grains and lean protein; limit "
            "added sugar, salt and highly processed food.\n"
            "• Sleep: most adults need 7 to 9 hours; keep a regular schedule.\n"
            "• Hydrate: drink water throughout the day.\n"
            "• Mind your mental health: take breaks, stay connected with people, and ask for "
            "help when you need it.\n"
            "• Keep up with check-ups, screenings and vaccinations.\n\n"
            "Would you like tips on a particular area such as sleep, diet or stress?"
        ),
    },
    {
        "id": "emergency",
        "label": "Emergency Info",
        "icon": "🚨",
        "content": (
            "🚨 If you or someone else may be having a medical emergency, call your local "
            "emergency number (911 in the US, 112 in Europe, 999 in the UK) right away.\n\n"
            "Call emergency services for:\n"
            "• Chest pain or pressure, or pain spreading to the arm, jaw or back\n"
            "• Difficulty breathing or severe shortness of breath\n"
            "• Signs of stroke: face drooping, arm weakness, speech difficulty\n"
            "• Severe bleeding that will not stop\n"
            "• Loss of consciousness, seizures or sudden confusion\n"
            "• Severe allergic reaction: swelling of the face or throat, trouble breathing\n"
            "• Suspected poisoning or overdose\n"
            "• Thoughts of harming yourself or others\n\n"
            "Do not wait for an online answer in an emergency. While you wait for help, stay "
            "with the person and follow the dispatcher's instructions."
        ),
    },
]

QUICK_ACTIONS_BY_ID = {action["id"]: action for action in QUICK_ACTIONS}


def quick_action_content(tag):
    """Return the canned text for ``tag``, or None for an unknown tag."""
    action = QUICK_ACTIONS_BY_ID.get(tag)
    return action["content"] if action else None


def list_quick_actions():
    return [{"id": a["id"], "label": a["label"], "icon": a["icon"]} for a in QUICK_ACTIONS]
