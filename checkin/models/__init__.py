# Session-held check in answers
