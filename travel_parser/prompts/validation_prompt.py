from langchain_core.prompts import PromptTemplate

VALIDATION_SYSTEM_PROMPT = """You are a data validation agent. Review the extracted data and verify its accuracy against the original document.

Check for:
1. Data consistency and correctness
2. Missing critical fields
3. Data format issues
4. Logical inconsistencies

Return a JSON response:
{
  "isValid": boolean,
  "confidence": 0.0-1.0,
  "validatedData": { refined data object },
  "issues": ["list of any issues found"],
  "refinements": { any data corrections made }
}"""


def get_validation_prompt() -> PromptTemplate:
    return PromptTemplate(
        input_variables=["document_text", "extracted_data"],
        template="""Original document:
{document_text}

Extracted data:
{extracted_data}

Validate and refine this data.""",
    )
