SYSTEM_PROMPT = "You are a helpful assistant that responds exactly with the requested JSON."

EXTRACT_PROMPT = """You are a precise resume parser. Input is raw resume text. Return ONLY a single valid JSON object (no explanation).
Schema:
{{ "file_name": "string or null", "name": "string or null", "email": "string or null", "phone": "string or null", "skills": ["string"], "total_years_experience": integer or null, "summary": "string or null" }}
Now parse the resume below and output only the JSON object.

----RESUME----
{resume}
----END----
"""

CONNECTION_TEST_SYSTEM_PROMPT = "You are a helpful assistant."

CONNECTION_TEST_PROMPT = 'Echo this JSON: {"status": "ok", "echo": "Resume Scanner connection test"}'
