"""Коги Discord: модерация постов, заявки и белый список."""
