"""Translated message catalogue."""

TRANSLATIONS = {
    "en": {
        "errors.resource_not_found": "Resource not found",
        "errors.entity_not_found": "{entity} with ID {id} was not found",
        "errors.not_authenticated": "Not authenticated",
        "errors.permission_denied": "Permission denied",
        "errors.project_access_denied": "You don't have access to this project",
        "errors.project_manage_denied": "Only the project owner or an admin member can do this",
        "errors.validation_error": "Validation error",
        "errors.validation_field": "{field}: {reason}",
        "errors.invalid_transition": "Cannot transition task from {from_status} to {to_status}",
        "errors.resource_conflict": "Resource conflict",
        "errors.task_modified_concurrently": "Task {id} was modified by another request, reload and retry",
        "errors.version_mismatch": "Task {id} is at version {current}, request expected {expected}",
        "errors.internal": "An internal server error has occurred",
        "errors.comment_author_only": "Only the author can change this comment",
        "errors.attachment_uploader_only": "Only the uploader can remove this attachment",
        "errors.email_taken": "Email is already registered",
        "errors.username_taken": "Username is already taken",
        "errors.invalid_credentials": "Incorrect email or password",
        "errors.invalid_credentials_token": "Could not validate credentials",
        "errors.invalid_token": "Invalid or expired token",
        "errors.user_inactive": "User not found or inactive",
        "errors.permission_required": "Permission required: {permission}",
        "errors.already_member": "User {user_id} is already a member of project {project_id}",
        "errors.team_access_denied": "You are not a member of team {id}",
    },
    "ru": {
        "errors.resource_not_found": "Ресурс не найден",
        "errors.entity_not_found": "{entity} с ID {id} не найден",
        "errors.not_authenticated": "Требуется аутентификация",
        "errors.permission_denied": "Доступ запрещен",
        "errors.project_access_denied": "У вас нет доступа к этому проекту",
        "errors.project_manage_denied": "Это может сделать только владелец или администратор проекта",
        "errors.validation_error": "Ошибка валидации",
        "errors.validation_field": "{field}: {reason}",
        "errors.invalid_transition": "Нельзя перевести задачу из {from_status} в {to_status}",
        "errors.resource_conflict": "Конфликт ресурса",
        "errors.task_modified_concurrently": "Задача {id} была изменена другим запросом, обновите и повторите",
        "errors.version_mismatch": "Задача {id} имеет версию {current}, ожидалась {expected}",
        "errors.internal": "Внутренняя ошибка сервера",
        "errors.comment_author_only": "Изменить комментарий может только автор",
        "errors.attachment_uploader_only": "Удалить вложение может только загрузивший его",
        "errors.email_taken": "Email уже зарегистрирован",
        "errors.username_taken": "Имя пользователя уже занято",
        "errors.invalid_credentials": "Неверный email или пароль",
        "errors.invalid_credentials_token": "Не удалось проверить учетные данные",
        "errors.invalid_token": "Недействительный или просроченный токен",
        "errors.user_inactive": "Пользователь не найден или неактивен",
        "errors.permission_required": "Требуется право: {permission}",
        "errors.already_member": "Пользователь {user_id} уже участник проекта {project_id}",
        "errors.team_access_denied": "Вы не состоите в команде {id}",
    },
}
