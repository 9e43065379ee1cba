from flagzim import db

MODE_CLASSIC = 'classic'
MODE_DAILY = 'daily'
MODES = (MODE_CLASSIC, MODE_DAILY)


def make_key(name, mode, date=None):
    """Identity of one player's best record within a mode (and day, for daily)."""
    if mode == MODE_DAILY:
        return f"{name.lower()}|{MODE_DAILY}|{date}"
    return f"{name.lower()}|{MODE_CLASSIC}"


class ScoreRecord(db.Model):
    __tablename__ = 'score_record'
    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.Text, unique=True, nullable=False, index=True)
    name = db.Column(db.Text, nullable=False)
    score = db.Column(db.Integer, nullable=False, default=0)
    time = db.Column(db.Float, nullable=False)
    mode = db.Column(db.String(16), nullable=False, default=MODE_CLASSIC, index=True)
    date = db.Column(db.String(10), nullable=True, index=True)  # YYYY-MM-DD, daily only
    created_at = db.Column(db.BigInteger, nullable=False)  # epoch milliseconds of last write

    def is_better_than(self, other) -> bool:
        """Strictly higher score, or same score in strictly less time."""
        return self.score > other.score or (self.score == other.score and self.time < other.time)

    def replace_with(self, other) -> None:
        self.name = other.name
        self.score = other.score
        self.time = other.time
        self.date = other.date
        self.created_at = other.created_at

    def to_dict(self):
        return {
            'name': self.name,
            'score': self.score,
            'time': self.time,
            'mode': self.mode,
            'date': self.date,
            'key': self.key,
            'createdAt': self.created_at,
        }
