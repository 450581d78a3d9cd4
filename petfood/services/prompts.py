"""
Prompt text for the pet food analysis model call.

The rule set is fixed instruction text; only the pet context and the
ingredient list vary between requests.
"""

from petfood.services.types import PetContext

SYSTEM_PROMPT = (
    "You are a veterinary nutritionist AI assistant specializing in pet food analysis. "
    "You provide factual, evidence-based recommendations prioritizing pet safety. "
    "Always respond with valid JSON only."
)

SPECIES_RULES = {
    "cat": """### Rules for cats
- **Essential nutrients that MUST be present:** Taurine (critical), Arachidonic acid, Vitamin A (preformed), Arginine, high-quality animal protein
- **Toxic/Unacceptable ingredients:** Onions, garlic, chives, grapes, raisins, chocolate, caffeine, xylitol, alcohol, macadamia nuts
- **Questionable ingredients:** Excessive carbs/grains, low-quality protein fillers, artificial preservatives (BHA, BHT, ethoxyquin), unspecified by-products""",
    "dog": """### Rules for dogs
- **Essential nutrients:** Complete protein sources, essential fatty acids, vitamins, minerals with proper calcium/phosphorus ratio
- **Toxic/Unacceptable ingredients:** Onions, garlic (in significant amounts), grapes, raisins, chocolate, caffeine, xylitol, macadamia nuts, alcohol, avocado
- **Questionable ingredients:** Excessive grain fillers, generic "meat meal", artificial preservatives, excessive salt/sugars""",
}

USER_PROMPT_TEMPLATE = """Analyze the following pet food ingredients and provide a comprehensive assessment.

## INPUT INFORMATION:

**Pet Species:** {species}
**Pet Breed:** {breed}
**Pet Age:** {age} years
**Additional Information:** {additional_info}

**Product Ingredients:**
{ingredients}

## YOUR TASK:

Analyze these ingredients and determine if this food is recommended for this specific pet.

{species_rules}

### Additional Checks:
- Check for any allergens mentioned in Additional Information
- Ensure nutrition is appropriate for the pet's age (puppy/kitten vs adult vs senior)
- Consider breed-specific dietary needs
- Verify accommodation of any health conditions mentioned

## OUTPUT FORMAT (MUST BE VALID JSON):

{{
  "isRecommended": true or false,
  "justification": "A 2-4 sentence summary explaining your recommendation. Be specific about key strengths or concerns. Reference the pet's specific characteristics.",
  "concerns": [
    {{
      "type": "unacceptable" or "questionable",
      "ingredient": "specific ingredient name",
      "reason": "clear explanation of why this is concerning"
    }}
  ]
}}

## DECISION RULES:
- Set isRecommended = false if ANY unacceptable ingredients are present OR critical nutrients are missing OR ingredients conflict with health conditions/allergies
- Set isRecommended = true if all essential nutrients are present, no unacceptable ingredients, and appropriate for the pet
- List EVERY problematic ingredient in the concerns array
- Use "unacceptable" for toxic ingredients or critical missing nutrients (e.g., missing taurine for cats, xylitol for dogs)
- Use "questionable" for low-quality or suboptimal ingredients
- For missing critical nutrients, format as: ingredient: "Taurine (missing)", type: "unacceptable"

Provide your analysis now as valid JSON only, with no additional text:"""


def build_analysis_prompt(ingredients_text: str, pet: PetContext) -> str:
    """Render the user prompt for one analysis request."""
    return USER_PROMPT_TEMPLATE.format(
        species=pet.species_label,
        breed=pet.breed,
        age=pet.age,
        additional_info=pet.additional_info or "None provided",
        ingredients=ingredients_text.strip(),
        species_rules=SPECIES_RULES[pet.species],
    )
