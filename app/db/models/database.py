from typing import Any, Optional
import datetime
import decimal
import uuid

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, ForeignKeyConstraint, Index, Integer, Numeric, PrimaryKeyConstraint, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from app.libs.formats.datetime import now


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = 'user'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='user_pk'),
        UniqueConstraint('phone_number', name='user_phone_number_key'),
        UniqueConstraint('email', name='user_email_key'),
        CheckConstraint('balance >= 0', name='user_balance_check'),
        Index('idx_user_parent_phone', 'parent_phone_number'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    full_name: Mapped[str] = mapped_column(String, nullable=False)
    phone_number: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, nullable=False)
    password: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[str] = mapped_column(String, nullable=False, default='USER')
    parent_phone_number: Mapped[Optional[str]] = mapped_column(String)
    image_url: Mapped[Optional[str]] = mapped_column(Text)
    balance: Mapped[decimal.Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=decimal.Decimal('0'))
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_suspended: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    session_id: Mapped[Optional[str]] = mapped_column(String)
    last_login_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime)
    curriculum: Mapped[Optional[str]] = mapped_column(String)
    curriculum_type: Mapped[Optional[str]] = mapped_column(String)
    level: Mapped[Optional[str]] = mapped_column(String)
    language: Mapped[Optional[str]] = mapped_column(String)
    grade: Mapped[Optional[str]] = mapped_column(String)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now, onupdate=now)

    courses: Mapped[list['Course']] = relationship('Course', back_populates='user')
    purchases: Mapped[list['Purchase']] = relationship('Purchase', back_populates='user', cascade='all, delete-orphan')
    user_progress: Mapped[list['UserProgress']] = relationship('UserProgress', back_populates='user', cascade='all, delete-orphan')
    quiz_results: Mapped[list['QuizResult']] = relationship('QuizResult', back_populates='student', cascade='all, delete-orphan')
    subscriptions: Mapped[list['Subscription']] = relationship('Subscription', back_populates='user', cascade='all, delete-orphan')
    balance_transactions: Mapped[list['BalanceTransaction']] = relationship('BalanceTransaction', back_populates='user', cascade='all, delete-orphan')
    promo_codes: Mapped[list['PromoCode']] = relationship('PromoCode', foreign_keys='PromoCode.student_id', back_populates='student', cascade='all, delete-orphan')
    certificates: Mapped[list['Certificate']] = relationship('Certificate', foreign_keys='Certificate.student_id', back_populates='student', cascade='all, delete-orphan')


class Course(Base):
    __tablename__ = 'courses'
    __table_args__ = (
        ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='CASCADE', name='courses_user_id_fkey'),
        PrimaryKeyConstraint('id', name='courses_pkey'),
        Index('idx_courses_targets', 'target_curriculum', 'target_grade'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    image_url: Mapped[Optional[str]] = mapped_column(Text)
    price: Mapped[Optional[decimal.Decimal]] = mapped_column(Numeric(12, 2))
    is_free: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    target_curriculum: Mapped[Optional[str]] = mapped_column(String)
    target_curriculum_type: Mapped[Optional[str]] = mapped_column(String)
    target_level: Mapped[Optional[str]] = mapped_column(String)
    target_language: Mapped[Optional[str]] = mapped_column(String)
    target_grade: Mapped[Optional[str]] = mapped_column(String)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now, onupdate=now)

    user: Mapped['User'] = relationship('User', back_populates='courses')
    chapters: Mapped[list['Chapter']] = relationship('Chapter', back_populates='course', cascade='all, delete-orphan', order_by='Chapter.position')
    quizzes: Mapped[list['Quiz']] = relationship('Quiz', back_populates='course', cascade='all, delete-orphan', order_by='Quiz.position')
    live_streams: Mapped[list['LiveStream']] = relationship('LiveStream', back_populates='course', cascade='all, delete-orphan')
    purchases: Mapped[list['Purchase']] = relationship('Purchase', back_populates='course', cascade='all, delete-orphan')
    timetables: Mapped[list['Timetable']] = relationship('Timetable', back_populates='course', cascade='all, delete-orphan')


class Chapter(Base):
    __tablename__ = 'chapters'
    __table_args__ = (
        ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE', name='chapters_course_id_fkey'),
        PrimaryKeyConstraint('id', name='chapters_pkey'),
        Index('idx_chapters_course_position', 'course_id', 'position'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    course_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    video_url: Mapped[Optional[str]] = mapped_column(Text)
    video_type: Mapped[Optional[str]] = mapped_column(String)
    youtube_video_id: Mapped[Optional[str]] = mapped_column(String)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_free: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now, onupdate=now)

    course: Mapped['Course'] = relationship('Course', back_populates='chapters')
    attachments: Mapped[list['Attachment']] = relationship('Attachment', back_populates='chapter', cascade='all, delete-orphan')
    user_progress: Mapped[list['UserProgress']] = relationship('UserProgress', back_populates='chapter', cascade='all, delete-orphan')
    activities: Mapped[list['Activity']] = relationship('Activity', back_populates='chapter', cascade='all, delete-orphan')
    homework_submissions: Mapped[list['HomeworkSubmission']] = relationship('HomeworkSubmission', back_populates='chapter', cascade='all, delete-orphan')


class Attachment(Base):
    __tablename__ = 'attachments'
    __table_args__ = (
        ForeignKeyConstraint(['chapter_id'], ['chapters.id'], ondelete='CASCADE', name='attachments_chapter_id_fkey'),
        PrimaryKeyConstraint('id', name='attachments_pkey'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    chapter_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)

    chapter: Mapped['Chapter'] = relationship('Chapter', back_populates='attachments')


class UserProgress(Base):
    __tablename__ = 'user_progress'
    __table_args__ = (
        ForeignKeyConstraint(['chapter_id'], ['chapters.id'], ondelete='CASCADE', name='user_progress_chapter_id_fkey'),
        ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='CASCADE', name='user_progress_user_id_fkey'),
        PrimaryKeyConstraint('id', name='user_progress_pkey'),
        UniqueConstraint('user_id', 'chapter_id', name='user_progress_user_chapter_key'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    chapter_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now, onupdate=now)

    user: Mapped['User'] = relationship('User', back_populates='user_progress')
    chapter: Mapped['Chapter'] = relationship('Chapter', back_populates='user_progress')


class Purchase(Base):
    __tablename__ = 'purchases'
    __table_args__ = (
        ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE', name='purchases_course_id_fkey'),
        ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='CASCADE', name='purchases_user_id_fkey'),
        PrimaryKeyConstraint('id', name='purchases_pkey'),
        UniqueConstraint('user_id', 'course_id', name='purchases_user_course_key'),
        CheckConstraint("status IN ('ACTIVE','INACTIVE')", name='purchases_status_check'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    course_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default='ACTIVE')
    price_paid: Mapped[Optional[decimal.Decimal]] = mapped_column(Numeric(12, 2))
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now, onupdate=now)

    user: Mapped['User'] = relationship('User', back_populates='purchases')
    course: Mapped['Course'] = relationship('Course', back_populates='purchases')


class Quiz(Base):
    __tablename__ = 'quizzes'
    __table_args__ = (
        ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE', name='quizzes_course_id_fkey'),
        PrimaryKeyConstraint('id', name='quizzes_pkey'),
        CheckConstraint('max_attempts >= 1', name='quizzes_max_attempts_check'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    course_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    max_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    timer: Mapped[Optional[int]] = mapped_column(Integer)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now, onupdate=now)

    course: Mapped['Course'] = relationship('Course', back_populates='quizzes')
    questions: Mapped[list['Question']] = relationship('Question', back_populates='quiz', cascade='all, delete-orphan', order_by='Question.position')
    quiz_results: Mapped[list['QuizResult']] = relationship('QuizResult', back_populates='quiz', cascade='all, delete-orphan')


class Question(Base):
    __tablename__ = 'questions'
    __table_args__ = (
        ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='CASCADE', name='questions_quiz_id_fkey'),
        PrimaryKeyConstraint('id', name='questions_pkey'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    quiz_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    options: Mapped[Optional[list[str]]] = mapped_column(JSON)
    correct_answer: Mapped[str] = mapped_column(Text, nullable=False, default='')
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    image_url: Mapped[Optional[str]] = mapped_column(Text)

    quiz: Mapped['Quiz'] = relationship('Quiz', back_populates='questions')


class QuizResult(Base):
    __tablename__ = 'quiz_results'
    __table_args__ = (
        ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='CASCADE', name='quiz_results_quiz_id_fkey'),
        ForeignKeyConstraint(['student_id'], ['user.id'], ondelete='CASCADE', name='quiz_results_student_id_fkey'),
        PrimaryKeyConstraint('id', name='quiz_results_pkey'),
        UniqueConstraint('student_id', 'quiz_id', 'attempt_number', name='quiz_results_attempt_key'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    quiz_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    course_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    attempt_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    submitted_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)

    student: Mapped['User'] = relationship('User', back_populates='quiz_results')
    quiz: Mapped['Quiz'] = relationship('Quiz', back_populates='quiz_results')
    answers: Mapped[list['QuizAnswer']] = relationship('QuizAnswer', back_populates='quiz_result', cascade='all, delete-orphan')


class QuizAnswer(Base):
    __tablename__ = 'quiz_answers'
    __table_args__ = (
        ForeignKeyConstraint(['quiz_result_id'], ['quiz_results.id'], ondelete='CASCADE', name='quiz_answers_result_id_fkey'),
        PrimaryKeyConstraint('id', name='quiz_answers_pkey'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    quiz_result_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    question_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    student_answer: Mapped[str] = mapped_column(Text, nullable=False, default='')
    correct_answer: Mapped[str] = mapped_column(Text, nullable=False, default='')
    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    points_obtained: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    quiz_result: Mapped['QuizResult'] = relationship('QuizResult', back_populates='answers')


class Activity(Base):
    __tablename__ = 'activities'
    __table_args__ = (
        ForeignKeyConstraint(['chapter_id'], ['chapters.id'], ondelete='CASCADE', name='activities_chapter_id_fkey'),
        PrimaryKeyConstraint('id', name='activities_pkey'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    chapter_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now, onupdate=now)

    chapter: Mapped['Chapter'] = relationship('Chapter', back_populates='activities')
    submissions: Mapped[list['ActivitySubmission']] = relationship('ActivitySubmission', back_populates='activity', cascade='all, delete-orphan')


class ActivitySubmission(Base):
    __tablename__ = 'activity_submissions'
    __table_args__ = (
        ForeignKeyConstraint(['activity_id'], ['activities.id'], ondelete='CASCADE', name='activity_submissions_activity_id_fkey'),
        ForeignKeyConstraint(['student_id'], ['user.id'], ondelete='CASCADE', name='activity_submissions_student_id_fkey'),
        PrimaryKeyConstraint('id', name='activity_submissions_pkey'),
        UniqueConstraint('student_id', 'activity_id', name='activity_submissions_student_activity_key'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    activity_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    image_url: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now, onupdate=now)

    activity: Mapped['Activity'] = relationship('Activity', back_populates='submissions')
    student: Mapped['User'] = relationship('User')


class HomeworkSubmission(Base):
    __tablename__ = 'homework_submissions'
    __table_args__ = (
        ForeignKeyConstraint(['chapter_id'], ['chapters.id'], ondelete='CASCADE', name='homework_submissions_chapter_id_fkey'),
        ForeignKeyConstraint(['student_id'], ['user.id'], ondelete='CASCADE', name='homework_submissions_student_id_fkey'),
        PrimaryKeyConstraint('id', name='homework_submissions_pkey'),
        UniqueConstraint('student_id', 'chapter_id', name='homework_submissions_student_chapter_key'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    chapter_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    image_url: Mapped[str] = mapped_column(Text, nullable=False)
    corrected_image_urls: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now, onupdate=now)

    chapter: Mapped['Chapter'] = relationship('Chapter', back_populates='homework_submissions')
    student: Mapped['User'] = relationship('User')


class LiveStream(Base):
    __tablename__ = 'live_streams'
    __table_args__ = (
        ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE', name='live_streams_course_id_fkey'),
        ForeignKeyConstraint(['created_by'], ['user.id'], ondelete='CASCADE', name='live_streams_created_by_fkey'),
        PrimaryKeyConstraint('id', name='live_streams_pkey'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    course_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    meeting_url: Mapped[str] = mapped_column(Text, nullable=False)
    meeting_type: Mapped[str] = mapped_column(String, nullable=False)
    meeting_id: Mapped[Optional[str]] = mapped_column(String)
    meeting_password: Mapped[Optional[str]] = mapped_column(String)
    scheduled_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime)
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now, onupdate=now)

    course: Mapped['Course'] = relationship('Course', back_populates='live_streams')
    creator: Mapped['User'] = relationship('User')
    attendances: Mapped[list['LiveStreamAttendance']] = relationship('LiveStreamAttendance', back_populates='live_stream', cascade='all, delete-orphan')


class LiveStreamAttendance(Base):
    __tablename__ = 'live_stream_attendances'
    __table_args__ = (
        ForeignKeyConstraint(['live_stream_id'], ['live_streams.id'], ondelete='CASCADE', name='live_stream_attendances_stream_id_fkey'),
        ForeignKeyConstraint(['student_id'], ['user.id'], ondelete='CASCADE', name='live_stream_attendances_student_id_fkey'),
        PrimaryKeyConstraint('id', name='live_stream_attendances_pkey'),
        UniqueConstraint('live_stream_id', 'student_id', name='live_stream_attendances_stream_student_key'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    live_stream_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    clicked_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)

    live_stream: Mapped['LiveStream'] = relationship('LiveStream', back_populates='attendances')


class Certificate(Base):
    __tablename__ = 'certificates'
    __table_args__ = (
        ForeignKeyConstraint(['student_id'], ['user.id'], ondelete='CASCADE', name='certificates_student_id_fkey'),
        ForeignKeyConstraint(['teacher_id'], ['user.id'], ondelete='CASCADE', name='certificates_teacher_id_fkey'),
        PrimaryKeyConstraint('id', name='certificates_pkey'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    teacher_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(Text)
    description: Mapped[Optional[str]] = mapped_column(Text)
    image_url: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)

    student: Mapped['User'] = relationship('User', foreign_keys=[student_id], back_populates='certificates')
    teacher: Mapped['User'] = relationship('User', foreign_keys=[teacher_id])


class PromoCode(Base):
    __tablename__ = 'promo_codes'
    __table_args__ = (
        ForeignKeyConstraint(['student_id'], ['user.id'], ondelete='CASCADE', name='promo_codes_student_id_fkey'),
        ForeignKeyConstraint(['created_by'], ['user.id'], ondelete='SET NULL', name='promo_codes_created_by_fkey'),
        PrimaryKeyConstraint('id', name='promo_codes_pkey'),
        UniqueConstraint('code', name='promo_codes_code_key'),
        CheckConstraint('discount_percentage IS NULL OR (discount_percentage BETWEEN 1 AND 100)', name='promo_codes_discount_check'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    code: Mapped[Optional[str]] = mapped_column(String)
    discount_percentage: Mapped[Optional[int]] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(String, nullable=False, default='requested')
    is_used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    used_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now, onupdate=now)

    student: Mapped['User'] = relationship('User', foreign_keys=[student_id], back_populates='promo_codes')


class SubscriptionPlan(Base):
    __tablename__ = 'subscription_plans'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='subscription_plans_pkey'),
        UniqueConstraint('curriculum', 'grade', 'level', 'language', name='subscription_plans_target_key'),
        CheckConstraint('duration > 0', name='subscription_plans_duration_check'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    curriculum: Mapped[str] = mapped_column(String, nullable=False)
    grade: Mapped[str] = mapped_column(String, nullable=False)
    level: Mapped[Optional[str]] = mapped_column(String)
    language: Mapped[Optional[str]] = mapped_column(String)
    price: Mapped[decimal.Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    description: Mapped[Optional[str]] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now, onupdate=now)

    subscriptions: Mapped[list['Subscription']] = relationship('Subscription', back_populates='plan', cascade='all, delete-orphan')


class Subscription(Base):
    __tablename__ = 'subscriptions'
    __table_args__ = (
        ForeignKeyConstraint(['plan_id'], ['subscription_plans.id'], ondelete='CASCADE', name='subscriptions_plan_id_fkey'),
        ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='CASCADE', name='subscriptions_user_id_fkey'),
        PrimaryKeyConstraint('id', name='subscriptions_pkey'),
        Index('idx_subscriptions_user_status', 'user_id', 'status'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    plan_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default='PENDING')
    start_date: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime)
    end_date: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now, onupdate=now)

    user: Mapped['User'] = relationship('User', back_populates='subscriptions')
    plan: Mapped['SubscriptionPlan'] = relationship('SubscriptionPlan', back_populates='subscriptions')
    request: Mapped[Optional['SubscriptionRequest']] = relationship('SubscriptionRequest', uselist=False, back_populates='subscription', cascade='all, delete-orphan')


class SubscriptionRequest(Base):
    __tablename__ = 'subscription_requests'
    __table_args__ = (
        ForeignKeyConstraint(['subscription_id'], ['subscriptions.id'], ondelete='CASCADE', name='subscription_requests_subscription_id_fkey'),
        ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='CASCADE', name='subscription_requests_user_id_fkey'),
        ForeignKeyConstraint(['plan_id'], ['subscription_plans.id'], ondelete='CASCADE', name='subscription_requests_plan_id_fkey'),
        PrimaryKeyConstraint('id', name='subscription_requests_pkey'),
        UniqueConstraint('subscription_id', name='subscription_requests_subscription_id_key'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    subscription_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    plan_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    transaction_image: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default='PENDING')
    reviewed_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    reviewed_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now, onupdate=now)

    subscription: Mapped['Subscription'] = relationship('Subscription', back_populates='request')
    user: Mapped['User'] = relationship('User')
    plan: Mapped['SubscriptionPlan'] = relationship('SubscriptionPlan')


class StudentMessage(Base):
    __tablename__ = 'student_messages'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='student_messages_pkey'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    target_curriculum: Mapped[Optional[str]] = mapped_column(String)
    target_curriculum_type: Mapped[Optional[str]] = mapped_column(String)
    target_level: Mapped[Optional[str]] = mapped_column(String)
    target_language: Mapped[Optional[str]] = mapped_column(String)
    target_grade: Mapped[Optional[str]] = mapped_column(String)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now, onupdate=now)


class BalanceTransaction(Base):
    __tablename__ = 'balance_transactions'
    __table_args__ = (
        ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='CASCADE', name='balance_transactions_user_id_fkey'),
        PrimaryKeyConstraint('id', name='balance_transactions_pkey'),
        Index('idx_balance_transactions_user_created', 'user_id', 'created_at'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    amount: Mapped[decimal.Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    balance_after: Mapped[decimal.Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    reference_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    meta: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)

    user: Mapped['User'] = relationship('User', back_populates='balance_transactions')


class Timetable(Base):
    __tablename__ = 'timetables'
    __table_args__ = (
        ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE', name='timetables_course_id_fkey'),
        PrimaryKeyConstraint('id', name='timetables_pkey'),
        CheckConstraint('day_of_week BETWEEN 0 AND 6', name='timetables_day_of_week_check'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    course_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now, onupdate=now)

    course: Mapped['Course'] = relationship('Course', back_populates='timetables')
