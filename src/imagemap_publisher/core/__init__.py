"""Tool framework shared by the resizer and the uploader."""
