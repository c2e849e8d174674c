import html
from typing import List, Optional, Dict, Any
from pydantic import BaseModel

# notification_type -> email_templates.template_key
TEMPLATE_KEYS: Dict[str, str] = {
    'analysis_complete': 'analysis_complete',
    'candidate_match': 'candidate_high_score',
    'recruiter_alert': 'recruiter_alert',
    'interview_reminder': 'interview_reminder',
    'status_change': 'status_change',
    'status_change_team': 'status_change_team',
}

# Tokens whose values are trusted HTML fragments built here, not user text
RAW_HTML_TOKENS = frozenset({'candidates_list', 'next_steps_list'})


def escape_html_value(text: str) -> str:
    """HTML-escape a value, braces included, so it can never read as a {{token}}."""
    return html.escape(text).replace("{", "&#123;").replace("}", "&#125;")


def analysis_score_message(overall_score: int) -> str:
    if overall_score >= 80:
        return "Excellent! Your profile shows strong alignment with our requirements."
    if overall_score >= 60:
        return "Good performance! Your profile shows solid potential."
    return "Room for improvement. Consider the recommendations below to strengthen your profile."


def match_score_message(match_score: int) -> str:
    return "Outstanding Match!" if match_score >= 90 else "Strong Match!"


class AnalysisCompleteContent(BaseModel):
    candidate_name: str
    job_role: Optional[str] = None
    overall_score: int
    skills_score: int
    experience_score: int
    education_score: int
    recommendations: str = ""
    summary: str = ""

    def to_variables(self) -> Dict[str, str]:
        return {
            'candidate_name': self.candidate_name,
            'job_role': self.job_role or "the position",
            'overall_score': str(self.overall_score),
            'skills_score': str(self.skills_score),
            'experience_score': str(self.experience_score),
            'education_score': str(self.education_score),
            'score_message': analysis_score_message(self.overall_score),
            'recommendations': self.recommendations,
            'summary': self.summary,
        }


class CandidateMatchContent(BaseModel):
    candidate_name: str
    job_role: str
    match_score: int
    threshold: int

    def to_variables(self) -> Dict[str, str]:
        return {
            'candidate_name': self.candidate_name,
            'job_role': self.job_role,
            'match_score': str(self.match_score),
            'score_message': match_score_message(self.match_score),
            'threshold': str(self.threshold),
        }


class HighScorer(BaseModel):
    candidate_name: str
    candidate_email: str
    match_score: int


class RecruiterAlertContent(BaseModel):
    recipient_name: Optional[str] = None
    job_role: str
    threshold: int
    candidates: List[HighScorer]

    def to_variables(self) -> Dict[str, str]:
        count = len(self.candidates)
        return {
            'recruiter_greeting': f"Hi {self.recipient_name}," if self.recipient_name else "Hello,",
            'job_role': self.job_role,
            'threshold': str(self.threshold),
            'count': str(count),
            'plural': "" if count == 1 else "s",
            'candidates_list': NotificationMessageBuilder.build_candidates_list(self.candidates),
        }


class InterviewReminderContent(BaseModel):
    recipient_name: Optional[str] = None
    candidate_name: str
    candidate_email: str
    candidate_phone: Optional[str] = None
    job_role: Optional[str] = None
    overall_score: Optional[int] = None
    skills_score: Optional[int] = None
    stale_days: int = 3
    awaiting_status: str = "reviewed"

    def to_variables(self) -> Dict[str, str]:
        return {
            'recruiter_greeting': f"Hi {self.recipient_name}," if self.recipient_name else "Hello,",
            'candidate_name': self.candidate_name,
            'candidate_email': self.candidate_email,
            'candidate_phone': self.candidate_phone or "Not provided",
            'job_role': self.job_role or "Not specified",
            'overall_score': "N/A" if self.overall_score is None else str(self.overall_score),
            'skills_score': "N/A" if self.skills_score is None else str(self.skills_score),
            'stale_days': str(self.stale_days),
            'awaiting_status': self.awaiting_status,
        }


STATUS_LABELS: Dict[str, str] = {
    'new': "New Application",
    'reviewed': "Under Review",
    'interview': "Interview Stage",
    'offer': "Offer Extended",
    'hired': "Hired",
    'rejected': "Application Closed",
}

# Statuses that trigger a status_change email
KEY_STAGES = ('interview', 'offer', 'hired')


def status_label(status: Optional[str]) -> str:
    if not status:
        return "Not recorded"
    return STATUS_LABELS.get(status, status.replace('_', ' ').title())


def stage_message(status: str, job_role: Optional[str]) -> str:
    if status == 'interview':
        role = f" for the {job_role} position" if job_role else ""
        return (f"Great news! We'd like to invite you for an interview{role}. "
                "Our team will reach out shortly with available time slots and interview details.")
    if status == 'offer':
        return (f"Congratulations! We're pleased to extend an offer for the {job_role or 'position'}. "
                "Please check your email for the detailed offer letter and next steps.")
    if status == 'hired':
        role = f" as {job_role}" if job_role else ""
        return (f"Welcome to the team! We're excited to have you join us{role}. "
                "Our HR team will be in touch with onboarding details and your start date.")
    return f"Your application status is now: {status_label(status)}."


NEXT_STEPS: Dict[str, List[str]] = {
    'interview': [
        "Technical discussion about your experience",
        "Problem-solving scenarios",
        "Culture fit assessment",
        "Q&A session",
    ],
    'offer': [
        "Review the offer details carefully",
        "Feel free to ask any questions",
        "We look forward to your response",
    ],
    'hired': [
        "Complete pre-employment documentation",
        "Prepare necessary identification documents",
        "Watch for onboarding schedule",
    ],
}


class StatusChangeContent(BaseModel):
    """Candidate-facing update when an application reaches a key stage."""
    candidate_name: str
    job_role: Optional[str] = None
    new_status: str
    old_status: Optional[str] = None
    overall_score: Optional[int] = None

    def to_variables(self) -> Dict[str, str]:
        return {
            'candidate_name': self.candidate_name,
            'job_role': self.job_role or "the position",
            'status_label': status_label(self.new_status),
            'previous_status_label': status_label(self.old_status),
            'stage_message': stage_message(self.new_status, self.job_role),
            'next_steps_list': NotificationMessageBuilder.build_bullet_list(NEXT_STEPS.get(self.new_status, [])),
            'score_line': (
                "" if self.overall_score is None
                else f"Overall assessment score: {self.overall_score}/100"
            ),
        }


class StatusChangeTeamContent(BaseModel):
    recipient_name: Optional[str] = None
    candidate_name: str
    job_role: Optional[str] = None
    new_status: str
    old_status: Optional[str] = None
    overall_score: Optional[int] = None

    def to_variables(self) -> Dict[str, str]:
        return {
            'recruiter_greeting': f"Hi {self.recipient_name}," if self.recipient_name else "Hello,",
            'candidate_name': self.candidate_name,
            'job_role': self.job_role or "Not specified",
            'status_label': status_label(self.new_status),
            'previous_status_label': status_label(self.old_status),
            'overall_score': "N/A" if self.overall_score is None else str(self.overall_score),
        }


DEFAULT_TEMPLATES: Dict[str, Dict[str, str]] = {
    'analysis_complete': {
        'subject': "Your Application Analysis Results - {{job_role}}",
        'html': """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h1 style="color: #333;">Application Analysis Complete</h1>
  <p>Dear {{candidate_name}},</p>
  <p>Thank you for applying for <strong>{{job_role}}</strong>. We have completed the analysis of your application.</p>
  <p>{{score_message}}</p>
  <ul>
    <li><strong>Overall Score:</strong> {{overall_score}}/100</li>
    <li><strong>Skills:</strong> {{skills_score}}/100</li>
    <li><strong>Experience:</strong> {{experience_score}}/100</li>
    <li><strong>Education:</strong> {{education_score}}/100</li>
  </ul>
  <h3>Recommendations</h3>
  <p>{{recommendations}}</p>
  <p>Best regards,<br>The Recruitment Team</p>
</div>
""",
    },
    'candidate_high_score': {
        'subject': "{{score_message}} Your Application for {{job_role}}",
        'html': """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h1 style="color: #2e7d32;">{{score_message}}</h1>
  <p>Dear {{candidate_name}},</p>
  <p>Your profile scored <strong>{{match_score}}/100</strong> against our requirements for <strong>{{job_role}}</strong>,
  above our {{threshold}}-point threshold for priority candidates.</p>
  <p>Our recruitment team will be in touch about next steps.</p>
  <p>Best regards,<br>The Recruitment Team</p>
</div>
""",
    },
    'recruiter_alert': {
        'subject': "{{count}} High-Scoring Candidate{{plural}} for {{job_role}}",
        'html': """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <p>{{recruiter_greeting}}</p>
  <p>{{count}} candidate{{plural}} scored {{threshold}} or above for <strong>{{job_role}}</strong>:</p>
  {{candidates_list}}
  <p>Log in to review their applications.</p>
</div>
""",
    },
    'interview_reminder': {
        'subject': "Reminder: Schedule Interview - {{candidate_name}}",
        'html': """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #333;">Interview Scheduling Reminder</h2>
  <p>{{recruiter_greeting}}</p>
  <p>This is a reminder to schedule an interview for the following candidate:</p>
  <div style="background: #f5f5f5; padding: 15px; border-radius: 5px;">
    <h3 style="margin-top: 0;">{{candidate_name}}</h3>
    <p><strong>Job Role:</strong> {{job_role}}</p>
    <p><strong>Email:</strong> {{candidate_email}}</p>
    <p><strong>Phone:</strong> {{candidate_phone}}</p>
    <p><strong>Overall Score:</strong> {{overall_score}}/100</p>
    <p><strong>Skills Score:</strong> {{skills_score}}/100</p>
  </div>
  <p>This candidate has been in '{{awaiting_status}}' status for more than {{stale_days}} days.</p>
  <p>Please schedule an interview or update the candidate's status.</p>
</div>
""",
    },
    'status_change': {
        'subject': "Application Update: {{status_label}} - {{job_role}}",
        'html': """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h1 style="color: #333;">Application Update</h1>
  <p style="display: inline-block; background: #eef; color: #667eea; padding: 8px 16px; border-radius: 20px;"><strong>{{status_label}}</strong></p>
  <p>Hello {{candidate_name}},</p>
  <p>{{stage_message}}</p>
  {{next_steps_list}}
  <p>{{score_line}}</p>
  <p>Thank you for your interest in joining us.</p>
  <p>Best regards,<br>The Recruitment Team</p>
</div>
""",
    },
    'status_change_team': {
        'subject': "Candidate Status Update: {{candidate_name}} - {{status_label}}",
        'html': """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #333;">Candidate Status Update</h2>
  <p>{{recruiter_greeting}}</p>
  <div style="background: #f5f5f5; padding: 15px; border-radius: 5px;">
    <h3 style="margin-top: 0;">{{candidate_name}}</h3>
    <p>{{previous_status_label}} &rarr; <strong>{{status_label}}</strong></p>
    <p><strong>Position:</strong> {{job_role}}</p>
    <p><strong>Overall Score:</strong> {{overall_score}}/100</p>
  </div>
  <p>View full candidate details in your recruitment dashboard.</p>
</div>
""",
    },
}


class NotificationMessageBuilder:
    @staticmethod
    def template_key_for(notification_type: str) -> str:
        try:
            return TEMPLATE_KEYS[notification_type]
        except KeyError:
            raise ValueError(f"Unknown notification type: {notification_type}")

    @staticmethod
    def default_template(template_key: str) -> Dict[str, str]:
        return DEFAULT_TEMPLATES[template_key]

    @staticmethod
    def build_candidates_list(candidates: List[HighScorer]) -> str:
        """Build the HTML list of high scorers. Candidate fields are escaped here."""
        items = "".join(
            f"<li><strong>{escape_html_value(c.candidate_name)}</strong> ({escape_html_value(c.candidate_email)}) "
            f"- {c.match_score}/100</li>"
            for c in candidates
        )
        return f"<ul>{items}</ul>"

    @staticmethod
    def build_bullet_list(items: List[str]) -> str:
        if not items:
            return ""
        return "<ul>" + "".join(f"<li>{escape_html_value(item)}</li>" for item in items) + "</ul>"

    @staticmethod
    def variables_from_metadata(metadata: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        return dict((metadata or {}).get('variables') or {})
