from langchain_core.prompts import PromptTemplate


def get_extraction_system_prompt() -> PromptTemplate:
    return PromptTemplate(
        input_variables=["document_type", "schema_description"],
        template="""You are a data extraction agent. Extract structured data from the document text.

Target document type: {document_type}

Expected schema fields:
{schema_description}

Return your response in JSON format with the extracted fields, using the field names exactly as listed.
Only include fields that you can confidently extract from the text. Use null for missing fields; never invent values.
Dates should keep the format used in the document unless an ISO 8601 form is unambiguous.""",
    )


def get_extraction_prompt() -> PromptTemplate:
    return PromptTemplate(
        input_variables=["document_type", "document_text"],
        template="Extract data from this {document_type} document:\n\n{document_text}",
    )
