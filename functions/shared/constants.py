# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

# Firestore collections. Collections are created on first write, so these
# names are the whole "schema".
USERS_COLLECTION = "users"
ITEMS_COLLECTION = "items"
CONTACTS_COLLECTION = "contacts"
MESSAGES_COLLECTION = "messages"

# Form limits enforced before any write.
MIN_PASSWORD_LENGTH = 6
MIN_USERNAME_LENGTH = 3
MAX_MESSAGE_LENGTH = 1000

# Optimistic list entries carry this id prefix until the server assigns one.
TEMP_ID_PREFIX = "temp-"

# Highest code point in the BMP private use area; appended to a prefix to build
# an inclusive upper bound for "starts with" range queries.
PREFIX_QUERY_SENTINEL = "\uf8ff"

CONVERSATION_ID_SEPARATOR = "_"
