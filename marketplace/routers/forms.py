from fastapi import APIRouter, Path

from marketplace.core.errors import NotFoundError
from marketplace.forms.fields import FORMS
from marketplace.forms.validation import describe_fields

router = APIRouter(prefix="/api/forms", tags=["forms"])


@router.get("/{form_name}")
def read_form(form_name: str = Path(..., description="Registry name, e.g. 'users'")):
    """
    Describe a form's fields so clients validate with the same rules
    the server applies.
    """
    fields = FORMS.get(form_name)
    if fields is None:
        raise NotFoundError("Unknown form")
    return {"form": form_name, "fields": describe_fields(fields)}
