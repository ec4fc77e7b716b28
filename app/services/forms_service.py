import logging
from uuid import uuid4

from app.models.forms import ContactForm, FormReceipt, NominationForm

logger = logging.getLogger(__name__)


class FormsService:
    """
    Intake for the public nomination and contact forms. Submissions are
    acknowledged and logged only.
    """

    # TODO: hand nominations to the payment checkout once the $20 nomination fee product exists
    def submit_nomination(self, form: NominationForm) -> FormReceipt:
        reference = str(uuid4())
        logger.info(
            "Nomination %s received: business=%r type=%s contact=%s",
            reference,
            form.business_name,
            form.business_type.value,
            form.email,
        )
        return FormReceipt(
            reference=reference,
            kind="nomination",
            message="Thank you! Your nomination has been received.",
        )

    def submit_contact(self, form: ContactForm) -> FormReceipt:
        reference = str(uuid4())
        logger.info("Contact message %s received from %s", reference, form.email)
        return FormReceipt(
            reference=reference,
            kind="contact",
            message="Thank you for reaching out! We'll get back to you soon.",
        )


forms_service = FormsService()
