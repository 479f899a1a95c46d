"""Subjects and HTML bodies for donor and requester emails.

Every interpolated value is HTML-escaped.
"""

from __future__ import annotations

from html import escape

from .db_models import DonorProfile, DonorRequest
from .identity import donor_display_name, donor_identity

_STYLE = """
<style>
  body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
  .container { max-width: 600px; margin: 0 auto; padding: 20px; }
  .header { background-color: #dc3545; color: white; padding: 20px; text-align: center; }
  .content { background-color: #f8f9fa; padding: 20px; margin-top: 20px; }
  .urgent { background-color: #fff3cd; border-left: 4px solid #ffc107; padding: 10px; margin: 15px 0; }
  .details { background-color: white; padding: 15px; margin: 15px 0; border-radius: 5px; }
  .footer { text-align: center; margin-top: 20px; color: #666; font-size: 12px; }
</style>
"""


def _text(value: object | None, fallback: str = "Not specified") -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        return escape(fallback)
    return escape(str(value))


def _blood_type(request: DonorRequest) -> str:
    return request.blood_type.type if request.blood_type is not None else "Unknown"


def _district(request: DonorRequest) -> str:
    return request.location.district if request.location is not None else "Unknown"


def donor_request_subject(request: DonorRequest) -> str:
    return f"Urgent Blood Donation Request - {_blood_type(request)} Needed [Request #{request.id}]"


def donor_request_body(request: DonorRequest, donor: DonorProfile) -> str:
    """Email inviting a matched donor to reply YES."""

    return f"""<!DOCTYPE html>
<html>
<head>{_STYLE}</head>
<body>
  <div class="container">
    <div class="header"><h1>Blood Donation Request</h1></div>
    <div class="content">
      <p>Dear {_text(donor_display_name(donor))},</p>
      <p>A new blood donation request has been created that matches your blood type and location.</p>
      <div class="urgent"><strong>Urgency Level: {_text(request.urgency_level)}</strong></div>
      <div class="details">
        <h3>Request Details:</h3>
        <p><strong>Request ID:</strong> #{request.id}</p>
        <p><strong>Blood Type Needed:</strong> {_text(_blood_type(request))}</p>
        <p><strong>Location:</strong> {_text(_district(request))}</p>
        <p><strong>Patient Name:</strong> {_text(request.patient_name)}</p>
        <p><strong>Hospital:</strong> {_text(request.hospital_name)}</p>
        <p><strong>Contact Number:</strong> {_text(request.contact_number)}</p>
        <p><strong>Additional Notes:</strong> {_text(request.additional_notes, "None")}</p>
      </div>
      <div class="details">
        <h3>Reply to Confirm</h3>
        <p>If you are available and willing to donate, reply to this email with
        <strong>YES</strong> or <strong>I can help</strong>.</p>
        <p>Your reply is tracked automatically and the requester is notified of your confirmation.</p>
      </div>
      <p>Thank you for being a lifesaver!</p>
    </div>
    <div class="footer">
      <p>This is an automated message from BloodConnect.</p>
      <p><strong>Request ID: #{request.id}</strong> - Please keep it in the subject of your reply.</p>
    </div>
  </div>
</body>
</html>"""


def requester_confirmation_subject(request: DonorRequest) -> str:
    return f"Donor Confirmed - Request #{request.id} - {request.patient_name}"


def requester_confirmation_body(request: DonorRequest, donor: DonorProfile) -> str:
    """Email telling the requester who confirmed and how to reach them."""

    identity = donor_identity(donor)
    if identity.is_hidden or not identity.email:
        email_html = _text(identity.email)
    else:
        email_html = f'<a href="mailto:{escape(identity.email, quote=True)}">{escape(identity.email)}</a>'

    donor_blood_type = donor.blood_type.type if donor.blood_type is not None else None
    donor_district = donor.location.district if donor.location is not None else None
    last_donation = (
        donor.last_donation_date.strftime("%B %d, %Y")
        if donor.last_donation_date is not None
        else "Not recorded"
    )
    availability = "Yes" if donor.is_eligible else "Please verify"

    return f"""<!DOCTYPE html>
<html>
<head>{_STYLE}</head>
<body>
  <div class="container">
    <div class="header"><h1>Donor Confirmed!</h1></div>
    <div class="content">
      <p>A donor has confirmed their availability for your blood donation request.</p>
      <div class="details">
        <h3>Request Details:</h3>
        <p><strong>Request ID:</strong> #{request.id}</p>
        <p><strong>Patient Name:</strong> {_text(request.patient_name)}</p>
        <p><strong>Blood Type Needed:</strong> {_text(_blood_type(request))}</p>
        <p><strong>Location:</strong> {_text(_district(request))}</p>
        <p><strong>Urgency Level:</strong> {_text(request.urgency_level)}</p>
        <p><strong>Hospital:</strong> {_text(request.hospital_name)}</p>
      </div>
      <div class="details">
        <h3>Donor Contact Information:</h3>
        <p><strong>Name:</strong> {_text(identity.name)}</p>
        <p><strong>Email:</strong> {email_html}</p>
        <p><strong>Phone Number:</strong> {_text(identity.phone_number)}</p>
        <p><strong>Blood Type:</strong> {_text(donor_blood_type, "Unknown")}</p>
        <p><strong>Location:</strong> {_text(donor_district, "Unknown")}</p>
        <p><strong>Last Donation:</strong> {_text(last_donation)}</p>
        <p><strong>Available for Donation:</strong> {availability}</p>
      </div>
      <p><strong>Important:</strong> Please contact the donor as soon as possible to coordinate the donation.</p>
    </div>
    <div class="footer">
      <p>This is an automated message from BloodConnect.</p>
      <p>Request ID: #{request.id}</p>
    </div>
  </div>
</body>
</html>"""


def sms_request_text(request: DonorRequest) -> str:
    return (
        f"BloodConnect: Urgent {_blood_type(request)} blood needed in {_district(request)}. "
        f"Urgency: {request.urgency_level}. Contact: {request.contact_number}. "
        f"Request ID: {request.id}"
    )


__all__ = [
    "donor_request_subject",
    "donor_request_body",
    "requester_confirmation_subject",
    "requester_confirmation_body",
    "sms_request_text",
]
