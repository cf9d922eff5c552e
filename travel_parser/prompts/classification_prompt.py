from langchain_core.prompts import PromptTemplate

CLASSIFICATION_SYSTEM_PROMPT = """You are a document classification agent. Your job is to analyze the given text and determine if it's a HOUSING document (hotel bookings, accommodation, Airbnb) or TRANSPORTATION document (flights, trains, buses, car rentals).

Return your response in JSON format:
{
  "documentType": "housing" | "transportation" | "unknown",
  "confidence": 0.0-1.0,
  "reasoning": "brief explanation"
}"""


def get_classification_prompt() -> PromptTemplate:
    return PromptTemplate(
        input_variables=["document_text"],
        template="Classify this document:\n\n{document_text}",
    )
